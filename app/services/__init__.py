"""
Careers Mailer Services Module.

Services:
    - ContactService: contact form validation and relay
    - ApplicationService: job application delivery and upload cleanup
    - FileIntake: validation and staging of uploaded documents
"""

from .application_service import ApplicationService, collect_attachments
from .contact_service import ContactService
from .file_intake import FileIntake, accept_application, ensure_upload_dir

__all__ = [
    "ApplicationService",
    "collect_attachments",
    "ContactService",
    "FileIntake",
    "accept_application",
    "ensure_upload_dir",
]
