"""Web package — FastAPI app serving stored lunch data."""
