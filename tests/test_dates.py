from datetime import date, datetime, timedelta

from shortlink.dates import date_range


def test_single_day():
    day = date(2024, 5, 1)
    assert date_range(day, day) == [day]


def test_end_before_start_is_empty():
    assert date_range(date(2024, 5, 2), date(2024, 5, 1)) == []


def test_across_leap_day():
    assert date_range(date(2024, 2, 28), date(2024, 3, 1)) == [
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    ]


def test_consecutive_days_and_bounds():
    start, end = date(2023, 12, 20), date(2024, 1, 10)
    days = date_range(start, end)
    assert days[0] == start
    assert days[-1] == end
    assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))
    assert len(days) == (end - start).days + 1


def test_datetimes_keep_time_of_day():
    start = datetime(2024, 1, 1, 15, 30)
    end = datetime(2024, 1, 3, 12, 0)
    days = date_range(start, end)
    assert [d.day for d in days] == [1, 2]
    assert all(d.hour == 15 and d.minute == 30 for d in days)