"""Request and response shapes exposed by the API."""
