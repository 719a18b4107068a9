class RecruitFlowError(Exception):
    """Base class for errors raised by the resume parsing service."""


class ResumeValidationError(RecruitFlowError, ValueError):
    """Resume text is missing or too short to be parsed."""


class UnsupportedFileType(ResumeValidationError):
    """Uploaded file has an extension we cannot turn into text."""


class AIParseError(RecruitFlowError):
    """The AI backend answered with something we cannot use."""
