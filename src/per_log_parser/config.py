"""Export settings and their defaults."""

from dataclasses import dataclass


# Width of one output row in milliseconds
BIN_WIDTH_MS = 10
# Forward gap that starts a new session, in milliseconds
MAX_JUMP_MS = 1000

LOG_EXTENSION = '.log'
DBC_EXTENSION = '.dbc'

OUTPUT_FORMATS = {
    'csv': ',',
    'tsv': '\t',
}
DEFAULT_OUTPUT_FORMAT = 'csv'
OUTPUT_FILE_PREFIX = 'out_'


@dataclass
class ExportConfig:
    """Settings for one export run."""
    bin_width_ms: int = BIN_WIDTH_MS
    max_jump_ms: int = MAX_JUMP_MS
    log_extension: str = LOG_EXTENSION
    output_format: str = DEFAULT_OUTPUT_FORMAT

    def __post_init__(self):
        if not isinstance(self.bin_width_ms, int) or self.bin_width_ms <= 0:
            raise ValueError(f"Bin width must be a positive number of milliseconds, got {self.bin_width_ms!r}")
        if not isinstance(self.max_jump_ms, int) or self.max_jump_ms <= 0:
            raise ValueError(f"Max jump must be a positive number of milliseconds, got {self.max_jump_ms!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {self.output_format}")
        if not self.log_extension.startswith('.'):
            self.log_extension = '.' + self.log_extension

    @property
    def delimiter(self) -> str:
        return OUTPUT_FORMATS[self.output_format]

    def output_name(self, chunk_index: int) -> str:
        """File name for the table of the given session chunk."""
        return f'{OUTPUT_FILE_PREFIX}{chunk_index:03d}.{self.output_format}'
