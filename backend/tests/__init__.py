"""
Pytest suite for the GobiGo delivery backend.

Test categories:
- Unit tests: status policy, services with mocked payment providers
- API tests: FastAPI routes with in-memory SQLite
- Integration tests: order lifecycle across customer, business and driver
"""
