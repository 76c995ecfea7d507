"""Chart generation for retirement projections."""

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from retirement_sim_sg.simulation import Projection

SCENARIO_COLORS = {
    "low-growth": "#d62728",   # red
    "standard": "#1f77b4",     # blue
    "high-growth": "#2ca02c",  # green
    "stagflation": "#ff7f0e",  # orange
}
DEFAULT_COLOR = "#7f7f7f"

CPF_COLORS = {
    "OA": "#1f77b4",
    "SA": "#ff7f0e",
    "MA": "#2ca02c",
    "RA": "#9467bd",
}


def _format_money_axis(ax: plt.Axes):
    ax.yaxis.set_major_formatter(ticker.FuncFormatter(lambda x, _: f"{x:,.0f}"))


def _filename(output_path: Path, stem: str, name: str) -> Path:
    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    return output_path / f"{stem}{suffix}.png"


def plot_trajectory(
    projections: dict[str, Projection], output_path: Path, name: str = "",
    event_markers: list[tuple[float, float, str]] | None = None,
) -> Path:
    """Line chart of portfolio value through accumulation and drawdown.

    Args:
        projections: label -> Projection (one line each).
        output_path: directory to save the PNG.
        name: optional filename suffix ("sg" -> "trajectory-sg.png").
        event_markers: [(age, signed_amount, label), ...] drawn as annotations.

    Returns:
        Path to the generated PNG file.
    """
    fig, ax = plt.subplots(figsize=(14, 8))

    for label, proj in projections.items():
        ages = [p.age for p in proj.accumulation] + [p.age for p in proj.drawdown]
        values = [p.portfolio_value for p in proj.accumulation] + [p.portfolio_value for p in proj.drawdown]
        color = SCENARIO_COLORS.get(label, DEFAULT_COLOR)
        ax.plot(ages, values, label=label, color=color, linewidth=2)
        if proj.result.depletion_age is not None:
            ax.axvline(proj.result.depletion_age, color=color, linewidth=1, linestyle="--", alpha=0.6)

    ax.set_xlabel("Age")
    ax.set_ylabel("Portfolio value")
    ax.set_title("Portfolio trajectory")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_money_axis(ax)

    if event_markers:
        y_lo, y_hi = ax.get_ylim()
        for i, (age, amount, text) in enumerate(event_markers):
            color = "#27ae60" if amount > 0 else "#c0392b"
            ax.axvline(age, color="#888888", linewidth=0.7, linestyle=":", alpha=0.4, zorder=3)
            sign = "+" if amount > 0 else "-"
            # Stagger across 4 levels in the lower portion
            y_pos = y_lo + (y_hi - y_lo) * (0.05 + 0.07 * (i % 4))
            ax.annotate(
                f"{sign}{text} {abs(amount):,.0f}",
                xy=(age, y_pos),
                fontsize=10, color=color,
                ha="center", va="bottom",
                bbox=dict(boxstyle="round,pad=0.4", fc="white", ec=color, alpha=0.9, linewidth=0.8),
                zorder=10,
            )

    filepath = _filename(output_path, "trajectory", name)
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_cpf_balances(projection: Projection, output_path: Path, name: str = "") -> Path | None:
    """Stacked area chart of the four CPF accounts. None if CPF was not simulated."""
    snapshots = [p.cpf for p in projection.accumulation if p.cpf is not None]
    if not snapshots:
        return None
    ages = [p.age for p in projection.accumulation if p.cpf is not None]
    series = {
        "OA": [s.accounts.ordinary for s in snapshots],
        "SA": [s.accounts.special for s in snapshots],
        "MA": [s.accounts.medisave for s in snapshots],
        "RA": [s.accounts.retirement for s in snapshots],
    }

    fig, ax = plt.subplots(figsize=(14, 8))
    ax.stackplot(
        ages, *series.values(),
        labels=list(series), colors=[CPF_COLORS[k] for k in series], alpha=0.8,
    )
    if projection.transition is not None:
        ax.axvline(55, color="#333333", linewidth=1, linestyle="--", alpha=0.6)
    ax.set_xlabel("Age")
    ax.set_ylabel("Balance")
    ax.set_title("CPF account balances")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_money_axis(ax)

    filepath = _filename(output_path, "cpf", name)
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath
