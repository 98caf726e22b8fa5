import pytest

from ltrader.session import TradingSection
from ltrader.timeutils import make_daytm


@pytest.fixture
def section(tmp_path):
    path = tmp_path / "section.csv"
    path.write_text(
        "day_or_night,begin,end\n"
        "0,21:00:00,23:00:00\n"
        "1,09:00:00,10:15:00\n"
        "1,10:30:00,11:30:00\n"
        "1,13:30:00,15:00:00\n",
        encoding="utf-8",
    )
    return TradingSection(path)


def test_reads_all_windows(section):
    assert section.sections[0] == (make_daytm("21:00:00", 0), make_daytm("23:00:00", 0))
    assert len(section.sections) == 4


def test_window_is_half_open(section):
    assert section.is_in_trading(make_daytm("21:00:00", 0))
    assert section.is_in_trading(make_daytm("22:59:59", 0))
    assert not section.is_in_trading(make_daytm("23:00:00", 0))
    assert not section.is_in_trading(make_daytm("10:20:00", 0))


def test_open_and_close_time(section):
    assert section.get_open_time() == make_daytm("21:00:00", 0)
    assert section.get_close_time() == make_daytm("15:00:00", 0)


def test_next_open_time_within_day(section):
    assert section.next_open_time(make_daytm("10:20:00", 0)) == make_daytm("10:30:00", 0)
    assert section.next_open_time(make_daytm("12:00:00", 0)) == make_daytm("13:30:00", 0)


def test_next_open_time_before_night(section):
    assert section.next_open_time(make_daytm("20:00:00", 0)) == make_daytm("21:00:00", 0)


def test_next_open_time_after_close_is_zero(section):
    assert section.next_open_time(make_daytm("15:30:00", 0)) == 0


def test_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("day_or_night,begin,end\n", encoding="utf-8")
    section = TradingSection(path)
    assert section.get_open_time() == 0
    assert section.get_close_time() == 0
    assert not section.is_in_trading(make_daytm("10:00:00", 0))
    assert section.next_open_time(make_daytm("10:00:00", 0)) == 0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        TradingSection(tmp_path / "absent.csv")