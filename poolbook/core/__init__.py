"""
Core business logic for pool scheduling.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns, so the scheduling rules can be tested in
isolation.
"""
