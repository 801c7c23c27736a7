"""GPA, CGPA and grade calculators with session and account storage."""

__version__ = "0.1.0"
