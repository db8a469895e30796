"""
SwimClub Invoicing - monthly coaching invoices for a swim club.

This package contains the complete application:
- core: Framework-agnostic invoicing engine
- infrastructure: Read-only access to the club's roster database
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
