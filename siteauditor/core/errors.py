"""Exception hierarchy shared by the auditor."""


class AuditorError(Exception):
    """Base class for every error raised by siteauditor."""


class ConfigError(AuditorError, ValueError):
    """Invalid configuration, rejected before any browser work starts."""


class BrowserLaunchError(AuditorError, RuntimeError):
    """The browser process could not be started; the whole batch is lost."""


class SourceError(AuditorError):
    """A URL source failed while producing candidate URLs."""
