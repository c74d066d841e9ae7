# Import every model so Base.metadata knows all tables
from uniconnect.models.student import Student, StudentStatus, Track  # noqa: F401
from uniconnect.models.student_otp import StudentOtp  # noqa: F401
from uniconnect.models.site_settings import SiteSettings  # noqa: F401
