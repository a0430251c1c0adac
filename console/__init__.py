"""Dental clinic admin console: aiohttp JSON API."""
