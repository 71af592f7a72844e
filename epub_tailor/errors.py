"""Error kinds raised by the transformation pipeline."""


class EpubTailorError(Exception):
    """Base class for every error raised by epub_tailor."""


class FatalArchiveError(EpubTailorError):
    """The container could not be read or written. Aborts the run."""


class ItemProcessingError(EpubTailorError):
    """A single image could not be decoded or re-encoded.

    Always absorbed by the image stages: the original bytes are kept.
    """

    def __init__(self, path, message):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ConfigurationWarning(EpubTailorError):
    """A profile asked for something the book cannot satisfy.

    Logged where it happens; the run continues.
    """


class UnknownProfileError(EpubTailorError):
    def __init__(self, profile_id):
        super().__init__(f"Unknown profile: {profile_id!r}")
        self.profile_id = profile_id


class RunCancelled(EpubTailorError):
    """The run was superseded by a newer request."""
