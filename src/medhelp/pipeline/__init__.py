"""
Pipeline Module

Configuration, form state and session wiring.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.pipeline.config import AppConfig, load_config
from medhelp.pipeline.form import PatientForm
from medhelp.pipeline.session import ClinicSession

__all__ = [
    "AppConfig",
    "load_config",
    "PatientForm",
    "ClinicSession",
]
