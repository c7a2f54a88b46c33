"""
Configuration file parser for TripNav
Handles YAML and JSON configuration and trip request files with validation
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError

from tripnav.core.models import TransportMode

from .models import ConfigFormat, TripNavConfig, TripRequest

SUFFIX_FORMATS: Dict[str, ConfigFormat] = {
    '.yaml': ConfigFormat.YAML,
    '.yml': ConfigFormat.YAML,
    '.json': ConfigFormat.JSON,
}


class ConfigParserError(Exception):
    """Configuration parsing error"""
    pass


class ConfigParser:
    """Parser for TripNav configuration and trip files"""

    @staticmethod
    def detect_format(file_path: Path) -> ConfigFormat:
        """Map a file suffix to its format"""
        suffix = file_path.suffix.lower()
        try:
            return SUFFIX_FORMATS[suffix]
        except KeyError:
            supported = ", ".join(SUFFIX_FORMATS)
            raise ConfigParserError(f"Unsupported file format: {suffix or file_path.name} (use {supported})")

    @staticmethod
    def decode(content: str, format_type: ConfigFormat) -> Any:
        if format_type == ConfigFormat.YAML:
            try:
                return yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigParserError(f"Invalid YAML syntax: {e}")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigParserError(f"Invalid JSON syntax: {e}")

    @staticmethod
    def encode(data: Dict[str, Any], format_type: ConfigFormat) -> str:
        if format_type == ConfigFormat.YAML:
            return yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False, indent=2)
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    @staticmethod
    def load_file(file_path: Path) -> Dict[str, Any]:
        """
        Read a configuration or trip file into a mapping

        An empty file reads as an empty mapping. Any other top-level value
        (a list or a bare scalar) is rejected.

        Raises:
            ConfigParserError: If the file is missing, unreadable or not a mapping
        """
        format_type = ConfigParser.detect_format(file_path)
        if not file_path.is_file():
            raise ConfigParserError(f"Configuration file not found: {file_path}")

        try:
            content = file_path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigParserError(f"Error reading file: {e}")

        data = ConfigParser.decode(content, format_type)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParserError(f"{file_path.name} must contain a mapping, got {type(data).__name__}")
        return data

    @staticmethod
    def save_file(model: BaseModel, file_path: Path, format_type: Optional[ConfigFormat] = None) -> None:
        """Write a configuration or trip model, creating parent directories"""
        content = ConfigParser.encode(
            model.model_dump(exclude_none=True, mode='json'),
            format_type or ConfigParser.detect_format(file_path),
        )

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise ConfigParserError(f"Error saving file: {e}")

    @staticmethod
    def parse_config(file_path: Union[str, Path]) -> TripNavConfig:
        """
        Parse a configuration file into TripNavConfig

        Args:
            file_path: Path to configuration file

        Returns:
            TripNavConfig instance

        Raises:
            ConfigParserError: If parsing fails
        """
        raw_data = ConfigParser.load_file(Path(file_path))

        try:
            return TripNavConfig(**raw_data)
        except ValidationError as e:
            raise ConfigParserError(f"Configuration validation failed: {e}")

    @staticmethod
    def normalize_coordinate(data: Dict[str, Any]) -> Dict[str, Any]:
        """Accept lat/lon shorthand for coordinates"""
        normalized = data.copy()
        if 'coordinate' not in normalized:
            lat = normalized.pop('lat', normalized.pop('latitude', None))
            lon = normalized.pop('lon', normalized.pop('longitude', None))
            if lat is not None or lon is not None:
                normalized['coordinate'] = {'latitude': lat, 'longitude': lon}
        return normalized

    @staticmethod
    def normalize_stop(data: Dict[str, Any], position: int) -> Dict[str, Any]:
        """Normalize one stop entry from a trip file"""
        if not isinstance(data, dict):
            raise ConfigParserError(f"Stop {position} must be a mapping")

        normalized = ConfigParser.normalize_coordinate(data)
        normalized.setdefault('id', f"stop-{position}")
        normalized.setdefault('name', normalized['id'])

        if 'visit_minutes' in normalized:
            minutes = normalized.pop('visit_minutes')
            normalized['recommended_visit_duration'] = None if minutes is None else float(minutes) * 60

        return normalized

    @staticmethod
    def parse_trip_request(file_path: Union[str, Path]) -> TripRequest:
        """
        Parse a trip request file (origin, mode, stops)

        Raises:
            ConfigParserError: If parsing fails
        """
        raw_data = ConfigParser.load_file(Path(file_path))

        if 'origin' not in raw_data:
            raise ConfigParserError("Trip file missing 'origin' section")

        data = raw_data.copy()
        origin = data['origin']
        if isinstance(origin, dict):
            origin = ConfigParser.normalize_coordinate(origin)
            if 'address' in origin and 'origin_address' not in data:
                data['origin_address'] = origin.pop('address')
            data['origin'] = origin.get('coordinate', origin)

        if isinstance(data.get('mode'), str):
            try:
                data['mode'] = TransportMode(data['mode'].lower())
            except ValueError:
                raise ConfigParserError(f"Invalid transport mode: {data['mode']}")

        data['stops'] = [
            ConfigParser.normalize_stop(stop, position)
            for position, stop in enumerate(data.get('stops') or [], start=1)
        ]

        try:
            return TripRequest(**data)
        except ValidationError as e:
            raise ConfigParserError(f"Invalid trip request: {e}")

    @staticmethod
    def create_template_config() -> TripNavConfig:
        """Create a configuration populated with defaults"""
        return TripNavConfig(name="TripNav Configuration")
