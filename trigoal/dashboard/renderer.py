"""Stats dashboard image renderer."""

import logging
from datetime import datetime
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from trigoal.diary.models import BedtimePoint, GoalProgress, Stats, Tier
from trigoal.diary.stats import format_bedtime_axis

logger = logging.getLogger(__name__)

TIER_FILL = {
    Tier.EASY: (52, 211, 153),  # green
    Tier.HARD: (251, 191, 36),  # amber
    Tier.INSANE: (244, 63, 94),  # red
}
TRACK_COLOR = (229, 231, 235)
LINE_COLOR = (99, 102, 241)
TEXT_COLOR = (30, 41, 59)
MUTED_COLOR = (148, 163, 184)

# Night scale shown on the trend chart: 18:00 through 06:00 next morning
CHART_MIN = 18.0
CHART_MAX = 30.0


class DashboardRenderer:
    """Renders goal progress and the bedtime trend to an image."""

    def __init__(self, output_dir: str = "static/images"):
        """
        Initialize renderer.

        Args:
            output_dir: Directory to save generated images
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        # Try to load fonts, fall back to default
        self.fonts = self._load_fonts()

    def _load_fonts(self) -> dict:
        """Load fonts for rendering."""
        fonts = {}

        # Try to find system fonts
        font_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/System/Library/Fonts/Helvetica.ttc",  # macOS
        ]

        try:
            for path in font_paths:
                if Path(path).exists():
                    fonts["header"] = ImageFont.truetype(path, 24)
                    fonts["title"] = ImageFont.truetype(path, 16)
                    fonts["small"] = ImageFont.truetype(path, 12)
                    logger.info(f"Loaded fonts from {path}")
                    break
        except OSError as e:
            logger.warning(f"Could not load TrueType fonts: {e}, using default")
            fonts = {}

        if not fonts:
            default_font = ImageFont.load_default()
            fonts["header"] = default_font
            fonts["title"] = default_font
            fonts["small"] = default_font

        return fonts

    def render(
        self,
        stats: Stats,
        diary_date: str,
        width: int = 800,
        height: int = 480,
    ) -> tuple[str, str]:
        """
        Render the dashboard.

        Args:
            stats: Computed stats
            diary_date: Diary date shown in the header
            width: Image width
            height: Image height

        Returns:
            Tuple of (filename, file_path)
        """
        logger.info(f"Rendering dashboard with {len(stats.goals)} goals")

        image = Image.new("RGB", (width, height), "white")
        draw = ImageDraw.Draw(image)

        self._draw_header(draw, diary_date, width)
        chart_top = self._draw_goals(draw, stats.goals, width)
        self._draw_bedtime_chart(draw, stats.bedtime_series, chart_top, width, height)

        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        filename = f"dashboard-{timestamp}"
        file_path = self.output_dir / f"{filename}.png"

        image.save(file_path, "PNG")
        logger.info(f"Saved dashboard to {file_path}")

        return filename, str(file_path)

    def _draw_header(self, draw: ImageDraw.ImageDraw, diary_date: str, width: int):
        """Draw header with the diary date."""
        draw.text((20, 15), "Your Progress", fill=TEXT_COLOR, font=self.fonts["header"])

        day_text = f"Diary day {diary_date}"
        bbox = draw.textbbox((0, 0), day_text, font=self.fonts["title"])
        text_width = bbox[2] - bbox[0]
        draw.text((width - text_width - 20, 20), day_text, fill=MUTED_COLOR, font=self.fonts["title"])

        draw.line([20, 50, width - 20, 50], fill=TRACK_COLOR, width=2)

    def _draw_goals(self, draw: ImageDraw.ImageDraw, goals: list[GoalProgress], width: int) -> int:
        """
        Draw one progress bar per goal.

        Returns:
            Y coordinate below the last row
        """
        y = 65

        if not goals:
            draw.text((30, y), "No goals defined.", fill=MUTED_COLOR, font=self.fonts["title"])
            return y + 35

        for goal in goals[:5]:
            self._draw_goal_row(draw, goal, y, width)
            y += 50

        if len(goals) > 5:
            draw.text((30, y), f"+{len(goals) - 5} more", fill=MUTED_COLOR, font=self.fonts["small"])
            y += 20

        return y

    def _draw_goal_row(self, draw: ImageDraw.ImageDraw, goal: GoalProgress, y: int, width: int):
        """Draw a single goal label, bar and count."""
        x_margin = 30
        bar_width = width - 2 * x_margin

        draw.text((x_margin, y), goal.title, fill=TEXT_COLOR, font=self.fonts["title"])

        unit = f" {goal.unit}" if goal.unit else ""
        count_text = f"{goal.current:g} / {goal.target_insane:g}{unit}"
        bbox = draw.textbbox((0, 0), count_text, font=self.fonts["small"])
        text_width = bbox[2] - bbox[0]
        draw.text((width - x_margin - text_width, y + 3), count_text, fill=MUTED_COLOR, font=self.fonts["small"])

        self._draw_progress_bar(draw, goal, x_margin, y + 24, bar_width, 12)

    def _draw_progress_bar(
        self,
        draw: ImageDraw.ImageDraw,
        goal: GoalProgress,
        x: int,
        y: int,
        width: int,
        height: int,
    ):
        """
        Draw progress bar with tier markers.

        The fill is a fraction of the insane target and is coloured by tier.
        """
        draw.rectangle([x, y, x + width, y + height], fill=TRACK_COLOR)

        filled_width = int(goal.fill * width)
        if filled_width > 0:
            draw.rectangle([x, y, x + filled_width, y + height], fill=TIER_FILL[goal.tier])

        for marker in (goal.easy_marker, goal.hard_marker):
            marker_x = x + int(marker * width)
            draw.line([marker_x, y, marker_x, y + height], fill="white", width=2)

    def _draw_bedtime_chart(
        self,
        draw: ImageDraw.ImageDraw,
        series: list[BedtimePoint],
        top: int,
        width: int,
        height: int,
    ):
        """Draw the bedtime trend line, skipping days without a bedtime."""
        left, right = 70, width - 30
        top = top + 30
        bottom = height - 40

        draw.text((30, top - 25), "Bedtime Trend", fill=TEXT_COLOR, font=self.fonts["title"])

        values = [point.value for point in series if point.value is not None]
        if not values or bottom - top < 40:
            draw.text((left, top + 10), "Not enough bedtime data yet.", fill=MUTED_COLOR, font=self.fonts["small"])
            return

        low = min(CHART_MIN, float(int(min(values))))
        high = max(CHART_MAX, float(int(max(values)) + 1))

        def to_y(value: float) -> int:
            return int(bottom - (value - low) / (high - low) * (bottom - top))

        # Grid every 2 hours
        hour = low
        while hour <= high:
            grid_y = to_y(hour)
            draw.line([left, grid_y, right, grid_y], fill=TRACK_COLOR, width=1)
            draw.text((20, grid_y - 7), format_bedtime_axis(hour), fill=MUTED_COLOR, font=self.fonts["small"])
            hour += 2

        step = (right - left) / max(len(series) - 1, 1)
        coords = []
        for index, point in enumerate(series):
            point_x = int(left + index * step)
            draw.text((point_x - 15, bottom + 8), point.label, fill=MUTED_COLOR, font=self.fonts["small"])
            if point.value is not None:
                coords.append((point_x, to_y(point.value)))

        if len(coords) > 1:
            draw.line(coords, fill=LINE_COLOR, width=3)
        for point_x, point_y in coords:
            draw.ellipse([point_x - 4, point_y - 4, point_x + 4, point_y + 4], fill=LINE_COLOR)


def demo_render():
    """Demo: Render the dashboard from the configured data directory."""
    from dotenv import load_dotenv

    load_dotenv()

    from trigoal.config import settings
    from trigoal.diary.dates import current_diary_date
    from trigoal.diary.stats import StatsCalculator
    from trigoal.storage.backends import create_store
    from trigoal.storage.repository import DiaryStorage

    storage = DiaryStorage(create_store(settings.storage_backend, settings.data_dir))
    stats = StatsCalculator(settings.history_days).calculate(
        storage.load_entries(), storage.load_goals()
    )

    renderer = DashboardRenderer(settings.image_dir)
    filename, file_path = renderer.render(stats, current_diary_date())

    print("\n" + "=" * 60)
    print("DASHBOARD RENDERED")
    print("=" * 60)
    print(f"\nImage saved to: {file_path}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    demo_render()
