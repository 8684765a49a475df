"""Tests for config module.

Test Files and Coverage:
========================

| Test File          | Test Classes                                          | Tested Constructs | Tested Functionalities             |
|--------------------|-------------------------------------------------------|-------------------|------------------------------------|
| test_settings.py   | DefaultsTest, SettingsFileTest,                       | Settings          | Defaults, TOML loading, precedence |
|                    | EnvironmentOverrideTest, ValidationTest               |                   | of environment, validation         |
"""
