# midi/errors.py


class ParseError(Exception):
    """Raised when a MIDI file cannot be turned into notes.

    `kind` tells the three failure classes apart: "io", "format" or "invalid".
    """
    kind = "parse"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    @property
    def label(self) -> str:
        return "Parse error"


class MidiIOError(ParseError):
    kind = "io"

    @property
    def label(self) -> str:
        return "IO error"


class MidiFormatError(ParseError):
    kind = "format"

    @property
    def label(self) -> str:
        return "MIDI error"


class InvalidMidiFileError(ParseError):
    kind = "invalid"

    @property
    def label(self) -> str:
        return "Invalid file"
