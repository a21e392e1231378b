"""Printable one-page scoresheet PDF.

Layout (letter, 612 x 792 pt):
- Small-caps title and team / competition header lines
- Quantity chart reference for the team's roster size
- Three judge-panel columns (Building red, Tumbling teal, Overall yellow),
  each section total shown against its maximum
- Deductions list and the raw / final score block
"""

import fitz  # PyMuPDF

from .aggregator import compute_totals
from .models import ScoreEntry
from .scoring_rules import DEDUCTION_LABELS, DEDUCTIONS, max_for, quantity_chart

PAGE_W = 612
PAGE_H = 792
LEFT_MARGIN = 36
RIGHT_MARGIN = PAGE_W - 36
COL_GAP = 8
COL_W = (RIGHT_MARGIN - LEFT_MARGIN - 2 * COL_GAP) / 3

BLACK = (0, 0, 0)
GRAY = (0.4, 0.4, 0.4)
WHITE = (1, 1, 1)
BUILDING_RED = (0.94, 0.27, 0.27)
TUMBLING_TEAL = (0.13, 0.78, 0.71)
OVERALL_YELLOW = (0.92, 0.73, 0.23)

FONT_REGULAR = 'Times-Roman'
FONT_BOLD = 'Times-Bold'

TITLE_Y = 48
INFO_Y = 78
PANELS_Y = 140
LINE_H = 13
BODY_SIZE = 9
SECTION_SIZE = 10
PANEL_HEADER_SIZE = 12

# (panel title, color, panel category, sections)
# section: (label, category or None, [(field label, entry attribute)])
PANELS = [
    ('BUILDING', BUILDING_RED, 'building', [
        ('Stunt', 'stunt', [
            ('Difficulty', 'stunt_difficulty'),
            ('Execution', 'stunt_execution'),
            ('Driver Degree', 'stunt_driver_degree'),
            ('Driver Max Part', 'stunt_driver_max_part'),
        ]),
        ('Pyramid', 'pyramid', [
            ('Difficulty', 'pyramid_difficulty'),
            ('Execution', 'pyramid_execution'),
        ]),
        ('Toss', 'toss', [
            ('Difficulty', 'toss_difficulty'),
            ('Execution', 'toss_execution'),
        ]),
        ('Judge', None, [
            ('Creativity', 'building_creativity'),
            ('Showmanship', 'building_showmanship'),
        ]),
    ]),
    ('TUMBLING', TUMBLING_TEAL, 'tumbling', [
        ('Standing', 'standing', [
            ('Difficulty', 'standing_difficulty'),
            ('Execution', 'standing_execution'),
            ('Drivers', 'standing_drivers'),
        ]),
        ('Running', 'running', [
            ('Difficulty', 'running_difficulty'),
            ('Execution', 'running_execution'),
            ('Drivers', 'running_drivers'),
            ('Driver Max Part', 'running_driver_max_part'),
        ]),
        ('Jumps', 'jumps', [
            ('Difficulty', 'jumps_difficulty'),
            ('Execution', 'jumps_execution'),
        ]),
        ('Judge', None, [
            ('Creativity', 'tumbling_creativity'),
            ('Showmanship', 'tumbling_showmanship'),
        ]),
    ]),
    ('OVERALL', OVERALL_YELLOW, 'overall', [
        ('Dance', 'dance', [
            ('Difficulty', 'dance_difficulty'),
            ('Execution', 'dance_execution'),
        ]),
        ('Formations', 'formations', []),
        ('Creativity (avg)', 'creativity', [
            ('Overall Judge', 'overall_creativity'),
        ]),
        ('Showmanship (avg)', 'showmanship', [
            ('Overall Judge', 'overall_showmanship'),
        ]),
    ]),
]


def generate_scoresheet_pdf(entry: ScoreEntry, output_path: str):
    """Render one scoresheet to a single-page PDF.

    Args:
        entry: The scoresheet to render.
        output_path: Where to save the PDF.
    """
    totals = compute_totals(entry).rounded()
    level = entry.level

    doc = fitz.open()
    page = doc.new_page(width=PAGE_W, height=PAGE_H)

    _draw_small_caps(page, PAGE_W / 2, TITLE_Y, 'OFFICIAL SCORESHEET', 18, 13)
    _draw_header(page, entry)

    bottom = PANELS_Y
    for i, (title, color, category, sections) in enumerate(PANELS):
        x0 = LEFT_MARGIN + i * (COL_W + COL_GAP)
        panel_total = getattr(totals, category)
        y = _draw_panel(page, x0, PANELS_Y, title, color,
                        panel_total, max_for(category, level),
                        sections, entry, totals, level)
        bottom = max(bottom, y)

    y = _draw_deductions(page, bottom + 24, entry)
    _draw_final_block(page, y + 16, totals, max_for('total', level))

    doc.save(output_path)
    doc.close()


# --- Drawing functions ---

def _draw_header(page, entry: ScoreEntry):
    team = entry.team
    gym = team.gym if team else None
    competition = entry.competition

    team_line = team.name if team else 'No team'
    if gym:
        team_line += f'  |  {gym.name}'
    if team:
        team_line += (f'  |  {team.level}  {team.age_division.title()}  '
                      f'{team.tier.title()}  |  {team.athlete_count} athletes')

    comp_line = competition.name if competition else 'Practice'
    comp_line += f'  |  {entry.round}'
    if competition:
        comp_line += f'  |  {competition.date:%b} {competition.date.day}, {competition.date.year}'

    _draw_centered(page, INFO_Y, team_line, FONT_BOLD, 11, BLACK)
    _draw_centered(page, INFO_Y + 16, comp_line, FONT_REGULAR, 10, BLACK)

    if team:
        chart = quantity_chart(team.athlete_count)
        _draw_centered(page, INFO_Y + 34, f'Quantity chart  {chart.description}',
                       FONT_REGULAR, 9, GRAY)


def _draw_panel(page, x0, y, title, color, panel_total, panel_max,
                sections, entry, totals, level) -> float:
    """Draw one judge-panel column. Returns the y below the last row."""
    x1 = x0 + COL_W
    band = fitz.Rect(x0, y, x1, y + 20)
    page.draw_rect(band, color=color, fill=color)
    page.insert_text(fitz.Point(x0 + 6, y + 14), title,
                     fontname=FONT_BOLD, fontsize=PANEL_HEADER_SIZE, color=WHITE)
    _draw_right(page, x1 - 6, y + 14, f'{panel_total:.2f} / {panel_max:.2f}',
                FONT_BOLD, PANEL_HEADER_SIZE - 2, WHITE)

    y += 20 + LINE_H
    for label, category, rows in sections:
        page.insert_text(fitz.Point(x0 + 4, y), label,
                         fontname=FONT_BOLD, fontsize=SECTION_SIZE, color=BLACK)
        if category == 'formations':
            _draw_right(page, x1 - 4, y, f'{entry.formations:.2f} / {max_for(category):.2f}',
                        FONT_BOLD, SECTION_SIZE, BLACK)
        elif category:
            _draw_right(page, x1 - 4, y,
                        f'{getattr(totals, category):.2f} / {max_for(category, level):.2f}',
                        FONT_BOLD, SECTION_SIZE, BLACK)
        y += LINE_H

        for row_label, attr in rows:
            page.insert_text(fitz.Point(x0 + 14, y), row_label,
                             fontname=FONT_REGULAR, fontsize=BODY_SIZE, color=GRAY)
            _draw_right(page, x1 - 4, y, f'{getattr(entry, attr):.2f}',
                        FONT_REGULAR, BODY_SIZE, BLACK)
            y += LINE_H
        y += 4

    page.draw_rect(fitz.Rect(x0, band.y1, x1, y), color=color, width=0.75)
    return y


def _draw_deductions(page, y, entry: ScoreEntry) -> float:
    page.insert_text(fitz.Point(LEFT_MARGIN, y), 'DEDUCTIONS',
                     fontname=FONT_BOLD, fontsize=SECTION_SIZE + 1, color=BLACK)
    y += LINE_H + 2

    any_deduction = False
    for kind, counter, points in DEDUCTIONS:
        count = getattr(entry, counter)
        if count <= 0:
            continue
        any_deduction = True
        page.insert_text(fitz.Point(LEFT_MARGIN + 10, y),
                         f'{DEDUCTION_LABELS[kind]}  x{count}  (-{points:.2f} each)',
                         fontname=FONT_REGULAR, fontsize=BODY_SIZE + 1, color=BLACK)
        _draw_right(page, LEFT_MARGIN + 300, y, f'-{count * points:.2f}',
                    FONT_REGULAR, BODY_SIZE + 1, BLACK)
        y += LINE_H

    if not any_deduction:
        page.insert_text(fitz.Point(LEFT_MARGIN + 10, y), 'None',
                         fontname=FONT_REGULAR, fontsize=BODY_SIZE + 1, color=GRAY)
        y += LINE_H
    return y


def _draw_final_block(page, y, totals, total_max):
    x1 = RIGHT_MARGIN
    lines = [
        ('Raw Score', f'{totals.raw_score:.2f} / {total_max:.2f}', FONT_REGULAR, 11),
        ('Total Deductions', f'-{totals.deductions:.2f}', FONT_REGULAR, 11),
        ('FINAL SCORE', f'{totals.final_score:.2f}', FONT_BOLD, 16),
    ]
    page.draw_line(fitz.Point(LEFT_MARGIN, y - 12), fitz.Point(x1, y - 12),
                   color=GRAY, width=0.5)
    for label, value, font, size in lines:
        page.insert_text(fitz.Point(LEFT_MARGIN, y), label,
                         fontname=font, fontsize=size, color=BLACK)
        _draw_right(page, x1, y, value, font, size, BLACK)
        y += size + 8


def _draw_centered(page, y, text, font, size, color):
    tw = fitz.get_text_length(text, fontname=font, fontsize=size)
    page.insert_text(fitz.Point(PAGE_W / 2 - tw / 2, y), text,
                     fontname=font, fontsize=size, color=color)


def _draw_right(page, x_right, y, text, font, size, color):
    tw = fitz.get_text_length(text, fontname=font, fontsize=size)
    page.insert_text(fitz.Point(x_right - tw, y), text,
                     fontname=font, fontsize=size, color=color)


def _draw_small_caps(page, center_x, y, text, large_size, small_size):
    """Draw text in small caps, centered horizontally.

    First letter of each word at large_size, rest at small_size.
    """
    space_w = fitz.get_text_length(' ', fontname=FONT_BOLD, fontsize=large_size)
    words = text.upper().split()

    def char_size(ci):
        return large_size if ci == 0 else small_size

    total = space_w * (len(words) - 1) + sum(
        fitz.get_text_length(ch, fontname=FONT_BOLD, fontsize=char_size(ci))
        for word in words for ci, ch in enumerate(word))

    x = center_x - total / 2
    for wi, word in enumerate(words):
        if wi > 0:
            x += space_w
        for ci, ch in enumerate(word):
            fs = char_size(ci)
            page.insert_text(fitz.Point(x, y), ch,
                             fontname=FONT_BOLD, fontsize=fs, color=BLACK)
            x += fitz.get_text_length(ch, fontname=FONT_BOLD, fontsize=fs)
