"""Protocol layer: register map, frame codec, and register value codecs."""

from .framing import decode_read_response, encode_read_request, encode_write_request
from .commands import Command
from .registers import Register
