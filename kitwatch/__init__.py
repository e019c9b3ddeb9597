"""kitwatch: phishing-kit candidate validation and acquisition pipeline."""

__version__ = "0.1.0"
