"""API subpackage - FastAPI service for the storefront and admin tools."""
