"""resume-tailor: tailor a library of resume bullets to a job description with an LLM."""

__version__ = "0.1.0"
