import pathlib
import site

import pytest
from mssql_schema.cache import Cache
from mssql_schema.config.type_mapping import TypeMappingConfig

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear caches and config singletons around each test for isolation."""
    Cache.get_instance().clear_all()
    TypeMappingConfig.reset_instance()
    yield
    Cache.get_instance().clear_all()
    TypeMappingConfig.reset_instance()


pytest_plugins = [
    'tests.fixtures.mocks',
]
