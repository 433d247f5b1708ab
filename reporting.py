"""
Render the report charts and the narrative of findings.

Each aggregate maps to exactly one chart with a fixed title and axis labels:
density plots for continuous daily measures, pie charts for activity
category shares, box plots for sleep by weekday and bar charts for grouped
medians. Charts are written as PNG files next to a short report.md.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from aggregation import density_curve
from preprocessing import WEEKDAY_ORDER

logger = logging.getLogger(__name__)


DENSITY_CHARTS = [
    # (table, column, title, x label, file name)
    ('activity', 'TotalSteps', 'Distribution of Daily Total Steps', 'Total steps', 'density_total_steps.png'),
    ('activity', 'Calories', 'Distribution of Daily Calories', 'Calories (kcal)', 'density_calories.png'),
    ('sleep', 'SleepHours', 'Distribution of Nightly Sleep', 'Sleep (hours)', 'density_sleep_hours.png'),
]

PIE_CHARTS = [
    # (aggregate, title, file name, wedge labels are percentages)
    ('time_share', 'Share of Activity Time by Category', 'pie_time_share.png', True),
    ('distance_share', 'Activity Distance by Category (per total activity minutes)', 'pie_distance_share.png', False),
]

BOX_CHARTS = [
    ('SleepHours', 'Sleep Hours by Day of Week', 'Sleep (hours)', 'box_sleep_hours_weekday.png'),
    ('AsleepPercentage', 'Time Asleep in Bed by Day of Week', 'Asleep (% of time in bed)', 'box_asleep_percentage_weekday.png'),
]

METRIC_LABELS = {
    'heart_rate': ('Heart Rate', 'Median heart rate (bpm)'),
    'hourly_calories': ('Calories', 'Median calories per hour'),
    'hourly_intensity': ('Intensity', 'Median total intensity per hour'),
    'hourly_steps': ('Steps', 'Median steps per hour'),
    'sleep_hours': ('Sleep Hours', 'Median sleep (hours)'),
}

GROUP_LABELS = {
    'hour': ('Hour of Day', 'Hour of day'),
    'weekday': ('Day of Week', 'Day of week'),
}

CATEGORY_COLORS = ['#d62728', '#ff7f0e', '#2ca02c', '#7f7f7f']


def _save(fig, out_path: Path, dpi: int) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return out_path


def plot_density(values, title: str, x_label: str, out_path: Path, dpi: int = 150) -> Optional[Path]:
    grid, density = density_curve(values)
    if len(grid) == 0:
        logger.warning(f"  Skipping '{title}': not enough distinct values for a density")
        return None

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(grid, density, color='black', linewidth=1.2)
    ax.fill_between(grid, density, color='steelblue', alpha=0.3)
    ax.set_title(title)
    ax.set_xlabel(x_label)
    ax.set_ylabel('Density')
    ax.grid(True, alpha=0.3, axis='y')
    return _save(fig, out_path, dpi)


def plot_category_pie(shares: pd.Series, title: str, out_path: Path, dpi: int = 150,
                      show_percent: bool = True) -> Optional[Path]:
    if shares.empty or shares.sum() <= 0:
        logger.warning(f"  Skipping '{title}': no category totals")
        return None

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.pie(
        shares.values,
        labels=[f'{label} ({value:.2f})' for label, value in shares.items()],
        colors=CATEGORY_COLORS[:len(shares)],
        autopct='%1.1f%%' if show_percent else None,
        startangle=90,
        counterclock=False,
    )
    ax.set_title(title)
    ax.axis('equal')
    return _save(fig, out_path, dpi)


def plot_weekday_box(df: pd.DataFrame, value_col: str, title: str, y_label: str,
                     out_path: Path, dpi: int = 150) -> Optional[Path]:
    groups = []
    labels = []
    for day in WEEKDAY_ORDER:
        values = df.loc[df['Weekday'] == day, value_col].values.astype(float)
        values = values[np.isfinite(values)]
        if len(values) > 0:
            groups.append(values)
            labels.append(day[:3])

    if not groups:
        logger.warning(f"  Skipping '{title}': no rows")
        return None

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.boxplot(groups)
    ax.set_xticks(np.arange(1, len(labels) + 1))
    ax.set_xticklabels(labels)
    ax.set_title(title)
    ax.set_xlabel('Day of week')
    ax.set_ylabel(y_label)
    ax.grid(True, alpha=0.3, axis='y')
    return _save(fig, out_path, dpi)


def plot_grouped_bar(medians: pd.Series, title: str, x_label: str, y_label: str,
                     out_path: Path, dpi: int = 150) -> Optional[Path]:
    if medians.empty:
        logger.warning(f"  Skipping '{title}': no groups")
        return None

    labels = [str(idx)[:3] if isinstance(idx, str) else str(idx) for idx in medians.index]
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.bar(np.arange(len(medians)), medians.values, color='steelblue')
    ax.set_xticks(np.arange(len(medians)))
    ax.set_xticklabels(labels)
    ax.set_title(title)
    ax.set_xlabel(x_label)
    ax.set_ylabel(y_label)
    ax.grid(True, alpha=0.3, axis='y')
    return _save(fig, out_path, dpi)


def render_charts(tables: Dict[str, pd.DataFrame],
                  aggregates: Dict,
                  output_dir: Path,
                  dpi: int = 150) -> List[Path]:
    """
    Render the fixed chart sequence.

    Args:
        tables: 'activity' and 'sleep' cleaned tables
        aggregates: Result of aggregation.compute_aggregates
        output_dir: Directory for the PNG files
        dpi: Output resolution

    Returns:
        Paths of the charts that were written, in report order
    """
    output_dir = Path(output_dir)
    written = []

    for table, column, title, x_label, file_name in DENSITY_CHARTS:
        written.append(plot_density(tables[table][column].values, title, x_label, output_dir / file_name, dpi))

    for key, title, file_name, show_percent in PIE_CHARTS:
        written.append(plot_category_pie(aggregates[key], title, output_dir / file_name, dpi, show_percent))

    for column, title, y_label, file_name in BOX_CHARTS:
        written.append(plot_weekday_box(tables['sleep'], column, title, y_label, output_dir / file_name, dpi))

    for key, medians in aggregates['medians'].items():
        metric, group = key.rsplit('_by_', 1)
        metric_title, y_label = METRIC_LABELS[metric]
        group_title, x_label = GROUP_LABELS[group]
        title = f'Median {metric_title} by {group_title}'
        written.append(plot_grouped_bar(medians, title, x_label, y_label, output_dir / f'bar_{key}.png', dpi))

    written = [p for p in written if p is not None]
    logger.info(f"  Saved {len(written)} charts to {output_dir}")
    return written


def build_narrative(aggregates: Dict, exclusion: Dict) -> List[str]:
    """
    Turn the aggregates into short conclusion lines.

    Args:
        aggregates: Result of aggregation.compute_aggregates
        exclusion: Dict with 'total', 'excluded' and 'threshold_minutes'

    Returns:
        List of sentences, one finding each
    """
    lines = []

    lines.append(
        f"{exclusion['excluded']} of {exclusion['total']} daily activity records were excluded "
        f"(no steps or calories logged, or fewer than {exclusion['threshold_minutes']} minutes recorded); "
        f"{exclusion['total'] - exclusion['excluded']} remain."
    )

    time_share = aggregates['time_share']
    if not time_share.empty:
        top = time_share.idxmax()
        lines.append(
            f"{top} time dominates the day at {time_share[top]:.1f}% of recorded minutes; "
            f"very active time accounts for {time_share['Very Active']:.1f}%."
        )

    steps = aggregates['activity_summary'].loc['TotalSteps']
    if steps['count'] > 0:
        lines.append(f"Median daily steps: {steps['median']:.0f} (mean {steps['mean']:.0f}).")

    for key, medians in aggregates['medians'].items():
        if medians.empty:
            continue
        metric, group = key.rsplit('_by_', 1)
        metric_title = METRIC_LABELS[metric][0].lower()
        peak = medians.idxmax()
        if group == 'hour':
            lines.append(f"Median {metric_title} peaks at hour {peak} ({medians[peak]:.1f}).")
        else:
            lines.append(f"Median {metric_title} is highest on {peak} ({medians[peak]:.1f}).")

    sleep = aggregates['sleep_summary']
    if sleep.loc['SleepHours', 'count'] > 0:
        lines.append(
            f"Subjects sleep a median of {sleep.loc['SleepHours', 'median']:.1f} hours, "
            f"asleep for {sleep.loc['AsleepPercentage', 'median']:.1f}% of their time in bed."
        )

    return lines


def write_narrative(lines: List[str], charts: List[Path], output_dir: Path,
                    title: str = 'Wearable Activity Report') -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / 'report.md'

    with open(out_path, 'w') as f:
        f.write(f"# {title}\n\n## Findings\n\n")
        for line in lines:
            f.write(f"- {line}\n")
        f.write("\n## Charts\n\n")
        for chart in charts:
            f.write(f"![{Path(chart).stem}]({Path(chart).name})\n")

    logger.info(f"  Wrote narrative to {out_path}")
    return out_path
