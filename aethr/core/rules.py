"""
Aethr — Rule Engine

Deterministic error → fix rules loaded from a user-editable YAML file:

    rules:
      - name: missing-node-module
        match_regex: "cannot find module '(?P<mod>[^']+)'"
        fix_command: "npm install {{mod}}"
        confidence: 0.9
        explanation: "The module is not installed."

Rule-authoring contract for fix_command templates, applied in two passes:
1. `{{name}}` is replaced by the named capture group `name`
2. `$1`..`$5` are replaced by the first five positional groups
Groups that did not participate in the match leave their placeholder
untouched. Rules are tried in file order; the first match wins.
A rule whose pattern does not compile is skipped.
"""
import re
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Union

import structlog
import yaml

from .errors import RuleFileError
from .types import Rule, RuleMatch, DEFAULT_RULE_CONFIDENCE

logger = structlog.get_logger()

MAX_POSITIONAL_GROUPS = 5


def load_rules(path: Union[str, Path]) -> List[Rule]:
    """
    Read the ordered rule list from a YAML file.
    A missing file means no rules. Entries lacking a name, pattern or
    template are skipped. Raises RuleFileError if the file cannot be
    read or parsed.
    """
    rules_path = Path(path)
    if not rules_path.exists():
        return []
    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise RuleFileError(str(rules_path), str(e)) from e

    raw_rules = data.get("rules", []) if isinstance(data, dict) else data
    if not isinstance(raw_rules, list):
        raise RuleFileError(str(rules_path), "'rules' must be a list")

    rules = []
    for index, item in enumerate(raw_rules):
        rule = _parse_rule(item)
        if rule is None:
            logger.warning("rule_skipped", path=str(rules_path), index=index,
                           reason="missing name, match_regex or fix_command")
            continue
        rules.append(rule)
    return rules


def _parse_rule(item) -> Optional[Rule]:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    pattern = item.get("match_regex")
    template = item.get("fix_command")
    if not name or not pattern or not template:
        return None
    confidence = item.get("confidence")
    try:
        confidence = float(confidence) if confidence is not None else DEFAULT_RULE_CONFIDENCE
    except (TypeError, ValueError):
        confidence = DEFAULT_RULE_CONFIDENCE
    return Rule(
        name=str(name),
        match_regex=str(pattern),
        fix_command=str(template),
        confidence=confidence,
        explanation=str(item.get("explanation") or ""),
    )


def substitute_template(template: str, match: "re.Match") -> str:
    """Fill a fix template from a regex match: named groups, then $1..$5."""
    fix = template
    for name, value in match.groupdict().items():
        if value is not None:
            fix = fix.replace("{{" + name + "}}", value)
    for i in range(1, min(MAX_POSITIONAL_GROUPS, match.re.groups) + 1):
        value = match.group(i)
        if value is not None:
            fix = fix.replace(f"${i}", value)
    return fix


class RuleEngine:
    """
    Holds an ordered rule list and applies it to error text.
    Patterns are compiled once; broken patterns are remembered and skipped.
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules: List[Rule] = list(rules or [])
        self._compiled: Dict[str, Optional[Pattern]] = {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RuleEngine":
        return cls(load_rules(path))

    def __len__(self) -> int:
        return len(self.rules)

    def apply(self, error_text: str) -> Optional[RuleMatch]:
        """First matching rule's substituted fix, or None."""
        return apply_rules(self.rules, error_text, self._compile)

    def _compile(self, rule: Rule) -> Optional[Pattern]:
        if rule.match_regex not in self._compiled:
            self._compiled[rule.match_regex] = _compile_pattern(rule)
        return self._compiled[rule.match_regex]


def apply_rules(rules: List[Rule], error_text: str, compile_fn=None) -> Optional[RuleMatch]:
    """Iterate rules in order; return the first successful substitution."""
    compile_fn = compile_fn or _compile_pattern
    for rule in rules:
        pattern = compile_fn(rule)
        if pattern is None:
            continue
        match = pattern.search(error_text)
        if match is None:
            continue
        return RuleMatch(
            command=substitute_template(rule.fix_command, match),
            confidence=rule.confidence,
            explanation=rule.explanation,
            rule_name=rule.name,
        )
    return None


def _compile_pattern(rule: Rule) -> Optional[Pattern]:
    try:
        return re.compile(rule.match_regex)
    except re.error as e:
        logger.warning("rule_pattern_invalid", rule=rule.name, error=str(e))
        return None
