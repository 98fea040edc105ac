"""
Address geocoding layer.

Responsibilities:
- Manage Google Geocoding API configuration and credentials.
- Resolve a free-text address to a latitude/longitude pair.
- Report misconfiguration, unknown addresses and transport failures distinctly.
"""
