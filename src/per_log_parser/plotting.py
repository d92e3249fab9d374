"""Interactive plotting of exported session tables.

Loads a table written by the exporter (four header rows, then one row per
time bin) and draws selected signals with plotly.
"""

import os
from typing import Dict, List, Optional

try:
    import pandas as pd
    import plotly.graph_objects as go
    PLOTLY_AVAILABLE = True
except ImportError:
    PLOTLY_AVAILABLE = False
    pd = None
    go = None

from .table import HEADER_ROW_COUNT

INSTALL_HINT = "plotly and pandas are required for plotting. Install with: pip install -e \".[plotting]\""


class SessionPlotter:
    """Generate interactive plots from one exported session table."""

    def __init__(self, input_file: str, sep: Optional[str] = None):
        if not PLOTLY_AVAILABLE:
            raise ImportError(INSTALL_HINT)

        self.input_file = input_file
        if sep is None:
            sep = '\t' if input_file.endswith('.tsv') else ','
        self.sep = sep
        self._columns: Dict[str, int] = {}
        self._load_data()

    def _load_data(self):
        raw = pd.read_csv(self.input_file, sep=self.sep, header=None, dtype=str,
                          keep_default_na=False)
        if len(raw) < HEADER_ROW_COUNT:
            raise ValueError(f"Not an exported table (missing header rows): {self.input_file}")

        header = raw.iloc[:HEADER_ROW_COUNT]
        self.nodes = list(header.iloc[1, 1:])
        messages = header.iloc[2, 1:]
        signals = header.iloc[3, 1:]
        for col, (message, signal) in zip(header.columns[1:], zip(messages, signals)):
            self._columns[f'{message}.{signal}'] = col

        data = raw.iloc[HEADER_ROW_COUNT:]
        self.time = pd.to_numeric(data[0]).reset_index(drop=True)
        self.df = data.iloc[:, 1:].reset_index(drop=True)

    @property
    def signals(self) -> List[str]:
        """Signal labels in column order, as ``Message.Signal``."""
        return list(self._columns)

    def series(self, label: str) -> 'pd.Series':
        """Samples of one signal indexed by time in seconds, empty bins dropped."""
        if label not in self._columns:
            raise KeyError(f"Unknown signal: {label}")
        # empty cells coerce to NaN
        values = pd.to_numeric(self.df[self._columns[label]], errors='coerce')
        series = pd.Series(values.values, index=self.time.values, name=label)
        series.index.name = 'time_s'
        return series.dropna()

    def plot_signals(self, labels: Optional[List[str]] = None) -> 'go.Figure':
        """Line plot of the given signals (all signals with data if None)."""
        if labels is None:
            labels = [label for label in self.signals if not self.series(label).empty]

        fig = go.Figure()
        for label in labels:
            series = self.series(label)
            fig.add_trace(go.Scatter(
                x=series.index, y=series.values,
                mode='lines+markers',
                name=label,
                connectgaps=True,
            ))

        if not labels:
            fig.add_annotation(text="No signal data available",
                               xref="paper", yref="paper", x=0.5, y=0.5, showarrow=False)

        fig.update_layout(
            title=os.path.basename(self.input_file),
            xaxis_title='Time (s)',
            hovermode='x unified',
        )
        return fig

    def write_html(self, output_file: str, labels: Optional[List[str]] = None) -> str:
        self.plot_signals(labels).write_html(output_file)
        return output_file
