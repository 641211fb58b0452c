import pytest

from formgrid.core.grid import GridCell, IterationCursor, build_grid


def test_grid_is_full_cross_product_in_nested_order():
    axes = build_grid(["NSW", "TAS"], range(1998, 2001))
    cells = axes.cells()
    assert len(cells) == len(axes) == 2 * 3 * 12
    assert len(set(cells)) == len(cells)
    assert cells[0] == GridCell("NSW", 1998, 1)
    assert cells[1] == GridCell("NSW", 1998, 2)
    assert cells[12] == GridCell("NSW", 1999, 1)
    assert cells[36] == GridCell("TAS", 1998, 1)
    assert cells[-1] == GridCell("TAS", 2000, 12)


def test_cursor_walks_same_order_as_cells():
    axes = build_grid(["SA", "VIC"], [2019, 2020], [1, 6, 12])
    walked = []
    cursor = IterationCursor()
    while cursor is not None:
        walked.append(cursor.cell(axes))
        cursor = cursor.advance(axes.shape)
    assert walked == axes.cells()


def test_cursor_rolls_over_month_then_year():
    shape = (2, 2, 12)
    assert IterationCursor(0, 0, 11).advance(shape) == IterationCursor(0, 1, 0)
    assert IterationCursor(0, 1, 11).advance(shape) == IterationCursor(1, 0, 0)
    assert IterationCursor(1, 1, 11).advance(shape) is None


def test_years_must_be_contiguous():
    with pytest.raises(ValueError):
        build_grid(["NSW"], [2000, 2002])


def test_months_must_be_calendar_months():
    with pytest.raises(ValueError):
        build_grid(["NSW"], [2000], [0, 1])
    with pytest.raises(ValueError):
        build_grid(["NSW"], [2000], [13])


def test_cell_label():
    assert GridCell("VIC", 2020, 6).label() == "VIC 2020-06"


def test_duplicate_regions_and_months_are_rejected():
    with pytest.raises(ValueError):
        build_grid(["NSW", "NSW"], [2000])
    with pytest.raises(ValueError):
        build_grid(["NSW"], [2000], [1, 1, 2])
    with pytest.raises(ValueError):
        build_grid(["NSW"], [2000, 2000])
