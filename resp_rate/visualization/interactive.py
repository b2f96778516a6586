import plotly.graph_objects as go
from plotly.subplots import make_subplots
import numpy as np
from pathlib import Path


class SessionPlotter:
    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def plot_session(self, recording, average_df, rate_df, session_id=None):
        """Raw signal, windowed mean and rates of one session, stacked on a shared tick axis."""
        session_id = session_id or recording.session_id
        fig = make_subplots(rows=3, cols=1, shared_xaxes=True, vertical_spacing=0.07,
                            subplot_titles=(f"Raw: {session_id}", "Windowed mean", "Breaths per minute"))

        fig.add_trace(go.Scatter(x=recording.ticks, y=recording.values, name="Raw",
                                 line=dict(color='gray', width=1)), row=1, col=1)

        if not average_df.empty:
            fig.add_trace(go.Scatter(x=average_df['tick'], y=average_df['mean'], name="Mean",
                                     line=dict(color='#00CC96', width=1.5)), row=2, col=1)
            marked = average_df[average_df['marker'].astype(bool)]
            for tick in marked['tick']:
                fig.add_vline(x=tick, line_dash="dot", line_color="red")

        if not rate_df.empty:
            fig.add_trace(go.Scatter(x=rate_df['tick'], y=rate_df['instantaneous_rate'], name="Instantaneous",
                                     mode='markers', marker=dict(color='#636EFA', size=5)), row=3, col=1)
            fig.add_trace(go.Scatter(x=rate_df['tick'], y=rate_df['published_rate'], name="Published",
                                     line=dict(color='#EF553B', width=2), line_shape='hv'), row=3, col=1)

        fig.update_xaxes(title_text="Tick", row=3, col=1)
        fig.update_layout(height=800, title_text=f"Session: {session_id}")

        path = self.output_dir / f"{self._safe_name(session_id)}.html"
        fig.write_html(str(path))
        return path

    def plot_rate_overview(self, summaries_df, filename="rate_overview.html"):
        """Final and mean published rate per session."""
        if summaries_df.empty: return None
        df = summaries_df.sort_values('session_id')
        fig = go.Figure()
        fig.add_trace(go.Bar(x=df['session_id'], y=df['mean_published_rate'], name="Mean published"))
        fig.add_trace(go.Scatter(x=df['session_id'], y=df['final_rate'], name="Final", mode='markers',
                                 marker=dict(size=10, color='#EF553B')))
        overall = np.nanmean(df['mean_published_rate'].to_numpy(dtype=float))
        if np.isfinite(overall):
            fig.add_hline(y=overall, line_dash="dash", line_color="gray")
        fig.update_layout(title_text="Breathing rate per session", yaxis_title="BPM")
        path = self.output_dir / filename
        fig.write_html(str(path))
        return path

    @staticmethod
    def _safe_name(name):
        return "".join([c for c in str(name) if c.isalnum() or c in ('-', '_')]).strip() or "session"
