#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from synthfeed.config.loader import ConfigLoader
from synthfeed.config.validation import ConfigValidator, ValidationError


def validate_symbol_config(loader: ConfigLoader, symbol: str) -> List[ValidationError]:
    """Validate merged configuration for a symbol against its own volatility tier."""
    profile = loader.build_symbol_table().resolve(symbol)
    config = loader.merge_config(symbol)
    return ConfigValidator.validate_config(config, profile.volatility.oscillator)


def main():
    """Main validation function."""
    print("🔍 Validating SynthFeed configuration...")

    loader = ConfigLoader.create()
    table = loader.build_symbol_table()

    # Every configured symbol, plus one that falls back to the defaults
    symbols = table.symbols() + ["UNKNOWN/SYMBOL"]

    all_valid = True

    for symbol in symbols:
        try:
            errors = validate_symbol_config(loader, symbol)

            if errors:
                print(f"❌ {symbol}: {len(errors)} validation errors")
                for error in errors:
                    print(f"  • {error.field}: {error.message} (value: {error.value})")
                all_valid = False

        except Exception as e:
            print(f"❌ Error validating {symbol}: {e}")
            all_valid = False

    print(f"📊 Checked {len(symbols)} symbols")

    # Global ceiling: the weights must be safe for the most volatile tier
    errors = ConfigValidator.validate_config(loader.merge_config())
    if errors:
        print("❌ Default oscillator weights are unsafe for the most volatile tier:")
        for error in errors:
            print(f"  • {error.field}: {error.message}")
        all_valid = False

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
