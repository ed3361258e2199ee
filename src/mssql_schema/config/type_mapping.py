"""
Configuration for native -> abstract type overrides.
"""
import json
import logging
import pathlib

logger = logging.getLogger(__name__)


class TypeMappingConfig:
    """Configuration for custom native type mappings

    The file maps native type names (e.g. ``"sql_variant"``) to abstract types
    (e.g. ``"string"``) under a ``"types"`` key:

        {"types": {"sql_variant": "string", "xml": "text"}}
    """

    _instance = None

    @classmethod
    def get_instance(cls):
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    def __init__(self, config_file=None):
        self._types: dict[str, str] = {}

        if config_file:
            self.load_config(config_file)
        else:
            default_locations = [
                pathlib.Path('~/.config/mssql_schema/type_mapping.json').expanduser(),
                pathlib.Path('/etc/mssql_schema/type_mapping.json'),
                pathlib.Path('type_mapping.json'),
            ]

            for location in default_locations:
                if location.exists():
                    self.load_config(location)
                    break

    def load_config(self, config_file):
        """Load configuration from file"""
        try:
            with pathlib.Path(config_file).open() as f:
                config = json.load(f)
            for db_type, simple_type in config.get('types', {}).items():
                self._types[db_type.lower()] = simple_type
            logger.info(f'Loaded type mapping configuration from {config_file}')
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f'Failed to load type mapping config: {e}')

    def get_type_for_db_type(self, db_type):
        """Get configured abstract type for a native type name"""
        if not db_type:
            return None
        return self._types.get(db_type.split('(')[0].strip().lower())

    def add_type_mapping(self, db_type, simple_type):
        """Add a native type mapping"""
        self._types[db_type.lower()] = simple_type
