import enum


class PhotoType(str, enum.Enum):
    """Photo classification tags for survey photos.

    Used in Photo model to classify each capture. Stored values are the
    identifiers used by the field teams.
    """
    VISTA_AMPLA = "vista_ampla"
    SERVICOS_ITENS = "servicos_itens"
    DETALHES = "detalhes"


class UserRole(str, enum.Enum):
    """User roles for access control.

    Used in User model to define permissions.
    """
    ADMIN = "admin"
    SURVEYOR = "surveyor"


class FacingMode(str, enum.Enum):
    """Camera facing preference for the capture controller."""
    FRONT = "user"
    REAR = "environment"

    def toggled(self):
        return FacingMode.REAR if self is FacingMode.FRONT else FacingMode.FRONT


class WizardState(str, enum.Enum):
    """Per-photo states of the capture wizard."""
    IDLE = "idle"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    ENHANCING = "enhancing"
    STAGED = "staged"
    UPLOADING = "uploading"
    RECORDED = "recorded"
