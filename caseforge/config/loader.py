import json
import shlex
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from caseforge.solution.types import Command, Testcase

from .types import ConfigError, SuiteConfig, UnsupportedConfigFormatError

DEFAULT_TIMEOUT_S = 5.0


def load_suite(path: str | Path) -> SuiteConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Suite file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Suite path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    return _build_suite_config(raw_file)


def _detect_format(path: Path) -> str:
    match path.suffix:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case other:
            raise UnsupportedConfigFormatError(
                f"Unsupported file extension: {other!r}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")

    match fmt:
        case "yaml":
            try:
                raw_file = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                raw_file = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                raw_file = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: {fmt.upper()} parsed but the top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_suite_config(raw: Mapping[str, Any]) -> SuiteConfig:
    keys = {"command", "timeout", "working_dir", "env", "testcases"}

    for field in raw.keys():
        if field not in keys:
            raise ConfigError(f"Can't process: {field}")

    command = _build_command(raw)
    timeout_s = _build_timeout(raw)

    if "testcases" not in raw:
        raise ConfigError("Missing 'testcases' field")

    if not isinstance(raw["testcases"], list):
        raise ConfigError(f"'testcases' must be a list, got {type(raw['testcases'])}")

    if len(raw["testcases"]) < 1:
        raise ConfigError("There must be at least one testcase in the suite file")

    testcases: list[Testcase] = []
    seen: set[tuple[bool, int]] = set()
    counts = {False: 0, True: 0}

    for position, fields in enumerate(raw["testcases"], start=1):
        if not isinstance(fields, Mapping):
            raise ConfigError(f"testcase {position} must be a mapping")

        testcase = _build_testcase(position, fields, counts)
        key = (testcase.is_validator, testcase.index)
        if key in seen:
            kind = "validator" if testcase.is_validator else "example"
            raise ConfigError(f"Duplicate {kind} index: {testcase.index}")

        seen.add(key)
        testcases.append(testcase)

    return SuiteConfig(command=command, timeout_s=timeout_s, testcases=testcases)


def _build_command(raw: Mapping[str, Any]) -> Command:
    if "command" not in raw:
        raise ConfigError("Missing 'command' field")

    value = raw["command"]

    if isinstance(value, str):
        try:
            argv = shlex.split(value)
        except ValueError as exc:
            raise ConfigError(f"Can't split command: {value!r}") from exc
    elif isinstance(value, list):
        for item in value:
            if not isinstance(item, str):
                raise ConfigError(f"{item!r} should be a string in the command list")
        argv = list(value)
    else:
        raise ConfigError("The command should be a string or a list of strings")

    if len(argv) < 1 or len(argv[0].strip()) < 1:
        raise ConfigError("Command missing")

    env = {}
    if "env" in raw:
        if not isinstance(raw["env"], Mapping):
            raise ConfigError("Env should be a mapping")

        for key, item in raw["env"].items():
            if not isinstance(key, str):
                raise ConfigError(f"{key} should be a string")

            if len(key.strip()) < 1:
                raise ConfigError("An env key can't be empty")

            if not isinstance(item, str):
                raise ConfigError(f"{item} should be a string")

            env[key.strip()] = item

    working_dir = None
    if "working_dir" in raw:
        if not isinstance(raw["working_dir"], str):
            raise ConfigError("The working_dir should be a string")

        if len(raw["working_dir"].strip()) < 1:
            raise ConfigError("Please provide a working_dir or remove this field")

        working_dir = raw["working_dir"].strip()

    return Command.from_argv(argv, env=env or None, working_dir=working_dir)


def _build_timeout(raw: Mapping[str, Any]) -> float:
    if "timeout" not in raw:
        return DEFAULT_TIMEOUT_S

    value = raw["timeout"]

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"The timeout should be a number of seconds, got {type(value)}")

    if value <= 0:
        raise ConfigError(f"The timeout must be positive, got {value}")

    return float(value)


def _build_testcase(
    position: int, fields: Mapping[str, Any], counts: dict[bool, int]
) -> Testcase:
    keys = {"index", "title", "in", "out", "validator"}
    where = f"testcase {position}"

    for field in fields.keys():
        if field not in keys:
            raise ConfigError(f"{where}: Can't process: {field}")

    for field in ("in", "out"):
        if field not in fields:
            raise ConfigError(f"{where}: missing '{field}'")

        if not isinstance(fields[field], str):
            raise ConfigError(f"{where}: '{field}' should be a string")

    is_validator = fields.get("validator", False)
    if not isinstance(is_validator, bool):
        raise ConfigError(f"{where}: 'validator' should be true or false")

    # Indices count examples and validators separately.
    counts[is_validator] += 1
    index = fields.get("index", counts[is_validator])
    if isinstance(index, bool) or not isinstance(index, int):
        raise ConfigError(f"{where}: 'index' should be an integer")

    if "title" in fields:
        if not isinstance(fields["title"], str):
            raise ConfigError(f"{where}: 'title' should be a string")
        title = fields["title"].strip()
    else:
        title = f"{'Validator' if is_validator else 'Test'} #{index}"

    return Testcase(
        index=index,
        title=title,
        test_in=fields["in"],
        test_out=fields["out"],
        is_validator=is_validator,
    )
