"""
Report Integration Exceptions
Custom exceptions raised by report-fetching collaborators.
"""

from typing import Optional


class ReportFetchError(Exception):
    """Exception for report and list fetching errors."""
    
    def __init__(
        self, 
        message: str, 
        status_code: Optional[int] = None, 
        endpoint: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(self.message)
