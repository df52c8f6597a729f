"""Runs jsonschema meta-validation for the bundled schemas and the accounts file."""

from pathlib import Path
import json

import yaml
from jsonschema import Draft202012Validator


PACKAGE_DIR = Path(__file__).resolve().parent.parent / "ledger_auction"
SCHEMA_DIR = PACKAGE_DIR / "schemas"
ACCOUNTS_PATH = PACKAGE_DIR / "config" / "accounts.yaml"


def validate() -> None:
    for schema in SCHEMA_DIR.glob("*.json"):
        data = json.loads(schema.read_text())
        Draft202012Validator.check_schema(data)
    accounts_schema = json.loads((SCHEMA_DIR / "accounts.json").read_text())
    Draft202012Validator(accounts_schema).validate(yaml.safe_load(ACCOUNTS_PATH.read_text()))


if __name__ == "__main__":
    validate()
