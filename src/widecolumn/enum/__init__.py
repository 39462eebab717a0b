from .status_code import StatusCode as StatusCode, StatusCategory as StatusCategory
