"""
MedHelp

Clinical note-taking with AI-assisted intake.

Usage:
    from medhelp import ClinicSession

    session = ClinicSession.from_config("medhelp.yaml")
    form = session.new_form()
    session.extract_into(form, "54-year-old male with chest pain")
    form.set("name", "John Doe")
    form.set("gender", "male")
    record = form.submit()

Author: Cleansheet LLC
License: CC BY 4.0

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.pipeline.session import ClinicSession
from medhelp.pipeline.config import AppConfig

__version__ = "0.1.0"
__author__ = "Cleansheet LLC"
__license__ = "CC BY 4.0"

__all__ = [
    "ClinicSession",
    "AppConfig",
    "__version__",
]
