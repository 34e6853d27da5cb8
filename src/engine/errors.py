"""
Errors raised by the scheduling engine.

Caller errors derive from EngineError and carry a stable ``code`` that the
request/response layer reports back. BracketConstructionInvariant is kept
outside that hierarchy: it means the engine built something inconsistent and
must never be turned into an ordinary validation message.
"""


class EngineError(Exception):
    code = 'EngineError'

    def to_dict(self):
        return {'code': self.code, 'message': str(self)}


class InsufficientParticipantsError(EngineError):
    code = 'InsufficientParticipants'


class InsufficientQualifiersError(EngineError):
    code = 'InsufficientQualifiers'


class PoolsIncompleteError(EngineError):
    code = 'PoolsIncomplete'


class InvalidPoolConfigurationError(EngineError):
    code = 'InvalidPoolConfiguration'


class UnsupportedFormatError(EngineError):
    code = 'UnsupportedFormat'


class InvalidResultError(EngineError):
    code = 'InvalidResult'


class InvalidBracketError(EngineError):
    """A match set sent in by a caller is not a consistent bracket."""
    code = 'InvalidBracket'


class BracketConstructionInvariant(Exception):
    code = 'BracketConstructionInvariant'
