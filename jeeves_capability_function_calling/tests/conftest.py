import httpx
import pytest

from jeeves_capability_function_calling.capabilities.battery import BatteryStatusCapability
from jeeves_capability_function_calling.capabilities.catalog import CapabilityCatalog
from jeeves_capability_function_calling.capabilities.search_ms import SearchMsQueryCapability
from jeeves_capability_function_calling.capabilities.weather import WeatherCapability
from jeeves_capability_function_calling.config.settings import FunctionCallingSettings
from jeeves_capability_function_calling.tests.fakes import FakeBattery, weather_handler


@pytest.fixture
def settings():
    return FunctionCallingSettings(
        inference_timeout_seconds=0.5,
        synthesis_timeout_seconds=0.5,
    )


@pytest.fixture
def battery_reader():
    return lambda: FakeBattery(percent=85.0, secsleft=7200, power_plugged=False)


@pytest.fixture
def catalog(mock_logger, battery_reader):
    catalog = CapabilityCatalog(logger=mock_logger)
    catalog.register(BatteryStatusCapability(reader=battery_reader, logger=mock_logger))
    catalog.register(
        WeatherCapability(transport=httpx.MockTransport(weather_handler), logger=mock_logger)
    )
    catalog.register(SearchMsQueryCapability(location="S:\\", logger=mock_logger))
    return catalog
