from enum import Enum


class NGOStatus(str, Enum):
    Pending = "pending"
    DocumentsSubmitted = "documents_submitted"
    Verified = "verified"
    Rejected = "rejected"
    Suspended = "suspended"


class NGOType(str, Enum):
    Trust = "trust"
    Society = "society"
    Section8 = "section8"


class ProgramStatus(str, Enum):
    Draft = "draft"
    Active = "active"
    Completed = "completed"
    Suspended = "suspended"
    Cancelled = "cancelled"


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"


class PaymentStatus(str, Enum):
    Pending = "pending"
    Processing = "processing"
    Completed = "completed"
    Failed = "failed"
    Refunded = "refunded"
    Cancelled = "cancelled"


class VolunteerStatus(str, Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"
    Withdrawn = "withdrawn"
    Completed = "completed"
    Removed = "removed"


class RegistrationType(str, Enum):
    Volunteer = "volunteer"
    Beneficiary = "beneficiary"
    Participant = "participant"


class RegistrationStatus(str, Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"
    Completed = "completed"
    Cancelled = "cancelled"


class GrantStatus(str, Enum):
    Draft = "draft"
    Submitted = "submitted"
    UnderReview = "under_review"
    Approved = "approved"
    Rejected = "rejected"
    Disbursed = "disbursed"
    Completed = "completed"
    Cancelled = "cancelled"


class CertificateType(str, Enum):
    Volunteer = "volunteer"
    Donation = "donation"
    Participation = "participation"
    Achievement = "achievement"


class CertificateStatus(str, Enum):
    Active = "active"
    Expired = "expired"
    Revoked = "revoked"


class EmergencyType(str, Enum):
    Medical = "medical"
    Disaster = "disaster"
    Food = "food"
    Shelter = "shelter"
    Education = "education"
    Other = "other"


class UrgencyLevel(str, Enum):
    Low = "low"
    Medium = "medium"
    High = "high"
    Critical = "critical"


class EmergencyStatus(str, Enum):
    Pending = "pending"
    InProgress = "in_progress"
    Resolved = "resolved"
    Rejected = "rejected"
    Closed = "closed"


class VerificationStatus(str, Enum):
    Pending = "pending"
    Verified = "verified"
    Rejected = "rejected"


class AnnouncementType(str, Enum):
    General = "general"
    Urgent = "urgent"
    Event = "event"
    Service = "service"


class AnnouncementPriority(str, Enum):
    Low = "low"
    Medium = "medium"
    High = "high"


class ApprovalStatus(str, Enum):
    Draft = "draft"
    PendingApproval = "pending_approval"
    Approved = "approved"
    Rejected = "rejected"


class NotificationType(str, Enum):
    Grant = "grant"
    Volunteer = "volunteer"
    Donation = "donation"
    Emergency = "emergency"
    KYC = "kyc"
    Certificate = "certificate"
    Announcement = "announcement"
    Manager = "manager"
    General = "general"
