"""Survey forms: owned question sets, positional answer submission and
respondent tracking on top of a SQLAlchemy store.

Applications embedding the package call
``survey_forms.logging_config.setup_logging()`` once at startup to install
the environment-appropriate log formatter, and
``survey_forms.models.init_db()`` to create the tables.
"""

__version__ = "0.1.0"
