from __future__ import annotations

"""
Occurrence check script.

Uses:
- lcal.core.scheduler (via LunarRule.occurrences)
- lcal.features.preview.annotate_occurrences / leap_month_summary
"""

import argparse
import logging
from typing import List, Optional

from lcal.core.errors import LcalError
from lcal.core.lunisolar import converter_for
from lcal.features.preview import annotate_occurrences, leap_month_summary

from tools.common import add_common_args, dump_json, fail, limit_or_none, resolve_run


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lunar recurrence (农历重复) check")
    add_common_args(parser)
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        run = resolve_run(args)
        conv = converter_for(run.config.lunisolar)
        dates = run.rule.occurrences(run.profile, converter=conv, config=run.config)
    except LcalError as e:
        fail(f"{e.kind}: {e}")
        return

    views = annotate_occurrences(dates, converter=conv, limit=limit_or_none(args.limit))
    summary = leap_month_summary(dates, converter=conv)

    if args.json:
        dump_json(
            {
                "spec": run.rule.spec.label,
                "mode": run.rule.repeat_mode.value,
                "profile": run.profile.value,
                "count": len(dates),
                "rows": [
                    {
                        "date": v.date.isoformat(),
                        "year": int(v.lunar.year),
                        "month": int(v.lunar.month),
                        "day": int(v.lunar.day),
                        "leap": bool(v.lunar.is_leap),
                        "label": v.label,
                        "month_name": v.month_name,
                    }
                    for v in views
                ],
                "leap_month_summary": summary,
            }
        )
        return

    print(f"spec={run.rule.spec.label} mode={run.rule.repeat_mode.value} profile={run.profile.value} count={len(dates)}")
    for v in views:
        print(f"{v.key}  L={v.label}  year={int(v.lunar.year)} month_name={v.month_name}")
    if len(views) < len(dates):
        print(f"... {len(dates) - len(views)} more")
    if summary:
        print(f"leap months: {summary}")


if __name__ == "__main__":
    main()
