#!/usr/bin/env python3
"""
Basic Usage Example

Demonstrates intake extraction into a patient form and saving the record.

Usage:
    python examples/basic_usage.py

Requirements:
    - GROQ_API_KEY or GEMINI_API_KEY environment variable set
    - pip install -e .
"""

from medhelp import AppConfig, ClinicSession
from medhelp.identity import StaticIdentityProvider, User
from medhelp.pipeline.config import StorageConfig


def main():
    # In-memory storage, no profile on disk
    config = AppConfig(storage=StorageConfig(backend="memory")).with_env()
    user = User.from_email("ada@example.org", "Dr. Ada")
    session = ClinicSession(config, StaticIdentityProvider(user))

    note = """
    Patient is a 52-year-old female presenting with chest pain for the past
    3 hours, radiating to the left arm. Past medical history significant for
    hypertension. No known drug allergies. ECG ordered.
    """

    form = session.new_form()
    form.set("name", "Jane Roe")
    form.set("gender", "female")

    result = session.extract_into(form, note)
    if result.failed:
        print("Extraction failed:")
        for error in result.errors:
            print(f"  - {error}")
        return

    print(f"Draft from {result.backend}: {result.draft.to_dict()}")

    record = form.submit()
    print(f"\nSaved {record.name} ({record.age}) as {record.id}")
    print(f"Records matching 'chest': {len(session.store.search('chest'))}")


if __name__ == "__main__":
    main()
