"""CleanSuite backend API."""
