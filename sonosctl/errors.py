"""Exceptions raised by the discovery and control layers."""

# UPnP and AVTransport error codes reported in SOAP faults
UPNP_ERROR_CODES = {
    401: "InvalidAction",
    402: "InvalidArgs",
    404: "InvalidVar",
    501: "ActionFailed",
    701: "TransitionNotAvailable",
    702: "NoContents",
    703: "ReadError",
    704: "FormatNotSupported",
    705: "TransportLocked",
    706: "WriteError",
    707: "MediaNotWriteable",
    708: "RecordingFormatNotSupported",
    709: "MediaFull",
    710: "SeekModeNotSupported",
    711: "IllegalSeekTarget",
    712: "PlayModeNotSupported",
    713: "RecordQualityNotSupported",
    714: "IllegalMimeType",
    715: "ContentBusy",
    717: "PlaySpeedNotSupported",
    718: "InvalidInstanceId",
    737: "NoDnsServer",
    738: "BadDomainName",
    739: "ServerError",
}


class SonosError(Exception):
    """Base class for every error raised by sonosctl."""


class DiscoveryError(SonosError):
    """The SSDP search could not be sent, or nothing answered when required."""


class FetchError(SonosError):
    """A device description could not be retrieved or used."""

    def __init__(self, location, message):
        super().__init__(f"{location}: {message}")
        self.location = location


class UnreachableError(FetchError):
    pass


class MalformedDescriptionError(FetchError):
    pass


class IncompleteDescriptionError(FetchError):
    def __init__(self, location, missing):
        super().__init__(location, f"missing services: {', '.join(missing)}")
        self.missing = tuple(missing)


class ActionError(SonosError):
    """A SOAP action failed."""


class TransportError(ActionError):
    """The HTTP exchange failed without a usable UPnP fault.

    ``status`` is None when no response was received at all.
    """

    def __init__(self, status, body="", message=None):
        if message is None:
            message = f"HTTP status {status}" if status is not None else "no response"
        super().__init__(message)
        self.status = status
        self.body = body


class FaultError(ActionError):
    """The device answered with a UPnP fault envelope."""

    def __init__(self, code, description=""):
        self.code = code
        self.description = description or self.name
        super().__init__(f"UPnP error {code}: {self.description}")

    @property
    def name(self):
        return UPNP_ERROR_CODES.get(self.code, "Unknown")


class MetadataError(SonosError):
    """An embedded DIDL-Lite fragment could not be parsed."""
