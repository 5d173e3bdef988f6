"""
User-defined regex rules applied to statement text.

Rules cover in-house functions, package calls and naming conventions that
the built-in registry cannot know about. Each rule can be limited to a
source and/or target dialect.

Example JSON configuration:
{
  "custom_rules": [
    {
      "name": "Inline FN_GET_CODE",
      "pattern": "FN_GET_CODE\\s*\\(\\s*([^)]+)\\)",
      "replacement": "(SELECT code FROM codes WHERE id = \\1)",
      "flags": ["IGNORECASE"],
      "source": "oracle",
      "target": "postgresql",
      "enabled": true,
      "priority": 100
    }
  ],
  "settings": {
    "apply_before_default": true,
    "continue_on_error": true
  }
}
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .models import ConfigError, Dialect, UnsupportedDialectError

logger = logging.getLogger(__name__)

_FLAGS = {
    'IGNORECASE': re.IGNORECASE,
    'I': re.IGNORECASE,
    'MULTILINE': re.MULTILINE,
    'M': re.MULTILINE,
    'DOTALL': re.DOTALL,
    'S': re.DOTALL,
    'VERBOSE': re.VERBOSE,
    'X': re.VERBOSE,
}


@dataclass
class CustomRule:
    """One regex substitution, optionally limited to a dialect pair."""
    name: str
    pattern: str
    replacement: str
    description: str = ""
    flags: List[str] = field(default_factory=list)
    enabled: bool = True
    priority: int = 100  # higher runs first
    source: Optional[Dialect] = None
    target: Optional[Dialect] = None

    def __post_init__(self):
        regex_flags = 0
        for flag in self.flags:
            if flag.upper() not in _FLAGS:
                raise ConfigError(f"Unknown regex flag '{flag}' in rule '{self.name}'")
            regex_flags |= _FLAGS[flag.upper()]
        try:
            self.compiled_pattern = re.compile(self.pattern, regex_flags)
        except re.error as e:
            raise ConfigError(f"Invalid regex pattern in rule '{self.name}': {e}")

    def matches(self, source: Dialect, target: Dialect) -> bool:
        return (self.source is None or self.source is source) and \
            (self.target is None or self.target is target)

    def apply(self, sql: str) -> Tuple[str, bool]:
        """
        Apply this rule to one statement.

        Returns:
            Tuple of (transformed_sql, was_modified)
        """
        if not self.enabled:
            return sql, False
        new_sql = self.compiled_pattern.sub(self.replacement, sql)
        return new_sql, new_sql != sql


@dataclass
class CustomRulesConfig:
    """Loaded rule set plus its settings."""
    rules: List[CustomRule] = field(default_factory=list)
    apply_before_default: bool = True
    continue_on_error: bool = True
    source_file: Optional[str] = None

    def get_enabled_rules(self, source: Optional[Dialect] = None,
                          target: Optional[Dialect] = None) -> List[CustomRule]:
        """Enabled rules for the dialect pair, highest priority first."""
        rules = [r for r in self.rules if r.enabled]
        if source is not None and target is not None:
            rules = [r for r in rules if r.matches(source, target)]
        return sorted(rules, key=lambda r: -r.priority)

    def apply_all(self, sql: str, source: Optional[Dialect] = None,
                  target: Optional[Dialect] = None) -> Tuple[str, List[str]]:
        """
        Apply the enabled rules in priority order.

        Args:
            sql: Statement text
            source: Source dialect, used to select rules
            target: Target dialect, used to select rules

        Returns:
            Tuple of (transformed_sql, names_of_rules_that_changed_the_text)

        Raises:
            ConfigError: If a rule fails and continue_on_error is off
        """
        applied = []
        current = sql
        for rule in self.get_enabled_rules(source, target):
            try:
                current, modified = rule.apply(current)
            except (re.error, IndexError) as e:
                if not self.continue_on_error:
                    raise ConfigError(f"Error applying rule '{rule.name}': {e}")
                logger.warning("Custom rule '%s' failed: %s", rule.name, e)
                continue
            if modified:
                applied.append(rule.name)
        return current, applied


def _dialect(value: Optional[str], rule_name: str) -> Optional[Dialect]:
    if value is None:
        return None
    try:
        return Dialect.from_name(value)
    except UnsupportedDialectError as e:
        raise ConfigError(f"Rule '{rule_name}': {e}")


def parse_config(config_data: Dict[str, Any], source_file: Optional[str] = None) -> CustomRulesConfig:
    """
    Build a CustomRulesConfig from a configuration dictionary.

    Raises:
        ConfigError: If a rule lacks pattern or replacement, or is invalid
    """
    settings = config_data.get('settings', {})
    rules = []
    for i, rule_data in enumerate(config_data.get('custom_rules', [])):
        for required in ('pattern', 'replacement'):
            if required not in rule_data:
                raise ConfigError(f"Rule {i + 1} is missing required '{required}' field")
        name = rule_data.get('name', f'Rule_{i + 1}')
        rules.append(CustomRule(
            name=name,
            pattern=rule_data['pattern'],
            replacement=rule_data['replacement'],
            description=rule_data.get('description', ''),
            flags=rule_data.get('flags', []),
            enabled=rule_data.get('enabled', True),
            priority=rule_data.get('priority', 100),
            source=_dialect(rule_data.get('source'), name),
            target=_dialect(rule_data.get('target'), name),
        ))

    return CustomRulesConfig(
        rules=rules,
        apply_before_default=settings.get('apply_before_default', True),
        continue_on_error=settings.get('continue_on_error', True),
        source_file=source_file,
    )


def load_custom_rules(config_path: str) -> CustomRulesConfig:
    """
    Load custom rules from a JSON file.

    Raises:
        ConfigError: If the file is missing, not JSON or invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Custom rules configuration file not found: {config_path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in configuration file '{config_path}': {e}")
    config = parse_config(config_data, source_file=str(path))
    logger.debug("Loaded %d custom rules from %s", len(config.rules), config_path)
    return config


def create_sample_config() -> Dict[str, Any]:
    """Sample configuration with a few typical migration rules."""
    return {
        "description": "Custom rules for SQL dialect conversion",
        "settings": {
            "apply_before_default": True,
            "continue_on_error": True
        },
        "custom_rules": [
            {
                "name": "Inline FN_GET_CODE_NAME",
                "description": "Replace an in-house lookup function with a scalar subquery",
                "pattern": r"FN_GET_CODE_NAME\s*\(\s*([^,]+)\s*,\s*([^)]+)\)",
                "replacement": r"(SELECT code_name FROM tb_code WHERE group_id = \1 AND code_id = \2)",
                "flags": ["IGNORECASE"],
                "enabled": True,
                "priority": 100
            },
            {
                "name": "Drop Oracle schema prefix",
                "description": "Remove the APP_OWNER. prefix when moving to PostgreSQL",
                "pattern": r"\bAPP_OWNER\.",
                "replacement": "",
                "flags": ["IGNORECASE"],
                "source": "oracle",
                "target": "postgresql",
                "enabled": False,
                "priority": 50
            },
            {
                "name": "DBMS_OUTPUT to RAISE NOTICE",
                "description": "Turn DBMS_OUTPUT.PUT_LINE calls into RAISE NOTICE",
                "pattern": r"DBMS_OUTPUT\.PUT_LINE\s*\(\s*([^;]+?)\s*\)\s*;",
                "replacement": r"RAISE NOTICE '%', \1;",
                "flags": ["IGNORECASE"],
                "source": "oracle",
                "target": "postgresql",
                "enabled": True,
                "priority": 80
            },
            {
                "name": "MySQL zero date",
                "description": "Replace the MySQL zero date with NULL",
                "pattern": r"'0000-00-00(?: 00:00:00)?'",
                "replacement": "NULL",
                "source": "mysql",
                "enabled": True,
                "priority": 90
            }
        ]
    }


def save_sample_config(output_path: str) -> str:
    """Write the sample configuration to output_path and return the path."""
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(create_sample_config(), f, indent=2, ensure_ascii=False)
    return output_path


def validate_config(config_path: str) -> Tuple[bool, List[str]]:
    """
    Validate a custom rules configuration file.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    try:
        config = load_custom_rules(config_path)
    except ConfigError as e:
        return False, [str(e)]

    errors = []
    for rule in config.rules:
        try:
            rule.compiled_pattern.sub(rule.replacement, "SELECT * FROM test")
        except (re.error, IndexError) as e:
            errors.append(f"Rule '{rule.name}': replacement error - {e}")
    return len(errors) == 0, errors


def apply_custom_rules(sql: str, config: Optional[CustomRulesConfig], source: Optional[Dialect] = None,
                       target: Optional[Dialect] = None) -> Tuple[str, List[str]]:
    """Apply config to sql; a missing config leaves it unchanged."""
    if config is None:
        return sql, []
    return config.apply_all(sql, source, target)
