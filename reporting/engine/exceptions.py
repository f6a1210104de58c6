"""Domain exceptions raised by the reporting engine."""


class ReportingError(Exception):
    """Base exception for reporting engine failures."""

    pass


class StoreUnavailableError(ReportingError):
    """A write was attempted while no report store is configured."""

    def __init__(self, message: str = "Report store not configured. Add database settings to enable reporting."):
        super().__init__(message)


class ReportNotFoundError(ReportingError):
    """No report exists for the requested identifier."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class ReportAlreadyPostedError(ReportingError):
    """Posting was requested for a report that is already posted."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report {report_id} is already posted")
