from hrms.core.models.employee import Employee
from hrms.core.models.leave_type import LeaveType
from hrms.core.models.leave_balance import LeaveBalance
from hrms.core.models.leave_application import LeaveApplication
from hrms.core.models.leave_approval import LeaveApproval

__all__ = [
    "Employee",
    "LeaveType",
    "LeaveBalance",
    "LeaveApplication",
    "LeaveApproval",
]
