"""
Test utilities package for language pack builder tests.

### test_helpers.py
- `FakeTranslationService`: in-memory translation service behind `httpx.MockTransport`
- `create_test_config()`: validated configuration for builder tests
- `create_temp_config_file()`: context manager for temporary YAML config files
"""
