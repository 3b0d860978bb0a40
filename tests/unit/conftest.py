"""Unit test fixtures for courtbook.

Fixtures are inherited from the parent conftest.py:
- clock: FakeClock that only moves when advanced
- memory_store: MemoryKeyValueStore driven by clock
- mock_page: Mock AutomationPage with two open slots
- mock_browser: Mock AutomationBrowser opening mock_page
- launcher: AsyncMock returning mock_browser
- app_config: AppConfig with credentials and short timeouts
- site: SF Rec & Park site definition
"""
