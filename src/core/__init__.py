"""
Core business logic for club coaching.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns. The invoicing engine can be tested in
isolation and reused by the API and the command-line script alike.
"""
