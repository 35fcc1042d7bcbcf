"""Caller-visible messages shared by services and endpoints."""


class AuthMessages:
    INVALID_CREDENTIALS = "Incorrect email or password"
    INVALID_TOKEN = "Could not validate credentials"
    EMAIL_TAKEN = "Email already registered"
    ADMIN_REQUIRED = "Global admin access required"
    CANNOT_DELETE_SELF = "You cannot delete your own account"
    USER_NOT_FOUND = "User not found"
    USER_OWNS_PROJECTS = "Transfer or delete the projects this user owns first"


class AccessMessages:
    NOT_A_MEMBER = "You are not a member of this project"
    NO_PERMISSION_RECORD = "No permissions for this status"
    ACTION_NOT_GRANTED = "No permission to {action} tasks in this status"
    ROLE_REQUIRED = "Requires role: {roles}"
    NO_MOVE_PERMISSION = "No permission to move tasks into this status"


class ProjectMessages:
    NOT_FOUND = "Project not found"
    NAME_REQUIRED = "Project name is required"


class MemberMessages:
    NOT_FOUND = "Member not found"
    ALREADY_MEMBER = "User is already a member"
    OWNER_ROLE_LOCKED = "The project owner role cannot be assigned or changed"
    CANNOT_REMOVE_OWNER = "Cannot remove project owner"
    ADMIN_REQUIRES_OWNER = "Only the project owner can change another admin"
    PRIVILEGED_HAVE_FULL_ACCESS = "Owners and admins have full access; permissions cannot be set"
    DUPLICATE_STATUS = "Each status may appear only once"
    UNKNOWN_STATUS = "Status does not belong to this project"


class InviteMessages:
    INVALID = "Invite not found"
    EXPIRED = "Invite expired"
    EXHAUSTED = "Invite has reached its maximum uses"
    ALREADY_MEMBER = "You are already a member of this project"
    INVALID_ROLE = "Invites cannot grant the owner role"
    MAX_USES_POSITIVE = "max_uses must be positive"
    CODE_GENERATION_FAILED = "Unable to generate a unique invite code"


class StatusMessages:
    NOT_FOUND = "Status not found"
    SLUG_TAKEN = "Status slug already exists"
    SLUG_INVALID = "Status slug must contain letters or digits"
    LAST_STATUS = "Cannot delete the last status"
    IN_USE = "Cannot delete status with existing tasks"
    REORDER_MISMATCH = "Reorder payload must include every status exactly once"


class TaskMessages:
    NOT_FOUND = "Task not found"
    NO_STATUSES = "Project has no statuses"
    INVALID_STATUS = "Status does not belong to this project"
    ASSIGNEE_NOT_MEMBER = "Assignee must be a member of this project"
    TITLE_REQUIRED = "Task title is required"


class CommentMessages:
    NOT_FOUND = "Comment not found"
    EMPTY = "Comment text cannot be empty"
    AUTHOR_ONLY = "Only the author can modify this comment"


class AttachmentMessages:
    NOT_FOUND = "Attachment not found"
    FILE_EMPTY = "Uploaded file is empty"
    FILE_TOO_LARGE = "File exceeds the maximum upload size"
    INVALID_TYPE = "Only images, PDFs, documents, text and zip files are allowed"
