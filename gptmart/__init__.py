"""GPTMart backend: JSON-file catalog store, admin auth and public submissions."""
