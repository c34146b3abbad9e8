"""Utilities for validating rate table configuration and surfacing issues."""

from __future__ import annotations

import argparse
from collections import Counter
from typing import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .rates_config import (
    AnnualTaxConfig,
    AwardConfig,
    SetAsideConfig,
    WeeklyWithholdingConfig,
    YearConfiguration,
    available_years,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_award(award: AwardConfig) -> list[str]:
    errors: list[str] = []

    thresholds = [rule.min_hours for rule in award.breaks]
    if thresholds != sorted(thresholds):
        errors.append(
            _format_scope("award.breaks", "break rules should be sorted by min_hours")
        )

    duplicates = [value for value, count in Counter(thresholds).items() if count > 1]
    if duplicates:
        errors.append(
            _format_scope(
                "award.breaks",
                f"duplicate break thresholds detected: {sorted(duplicates)}",
            )
        )

    for rule in award.breaks:
        if rule.break_hours >= rule.min_hours:
            errors.append(
                _format_scope(
                    "award.breaks",
                    f"break of {rule.break_hours}h would consume a {rule.min_hours}h shift",
                )
            )

    previous_break = 0.0
    for rule in sorted(award.breaks, key=lambda item: item.min_hours):
        if rule.break_hours < previous_break:
            errors.append(
                _format_scope(
                    "award.breaks",
                    "longer shifts cannot carry a shorter unpaid break",
                )
            )
        previous_break = rule.break_hours

    for bracket, rates in award.rates.items():
        if rates.evening < rates.base:
            errors.append(
                _format_scope(
                    f"award.rates.{bracket.value}",
                    "evening rate should not be lower than the base rate",
                )
            )

    return errors


def _validate_withholding(withholding: WeeklyWithholdingConfig) -> list[str]:
    errors: list[str] = []
    brackets = list(withholding.brackets)

    if brackets[0].lower != 0:
        errors.append(
            _format_scope(
                "weekly_withholding.brackets",
                "first bracket must start at 0",
            )
        )

    for previous, current in zip(brackets, brackets[1:]):
        if previous.upper is None:
            errors.append(
                _format_scope(
                    "weekly_withholding.brackets",
                    "only the last bracket may be open-ended",
                )
            )
            break
        if current.lower != previous.upper + 1:
            errors.append(
                _format_scope(
                    "weekly_withholding.brackets",
                    (
                        f"bracket starting at {current.lower} does not follow "
                        f"the bracket ending at {previous.upper}"
                    ),
                )
            )

    if brackets[-1].upper is not None:
        errors.append(
            _format_scope(
                "weekly_withholding.brackets",
                "last bracket must be open-ended",
            )
        )

    return errors


def _validate_annual_tax(annual_tax: AnnualTaxConfig) -> list[str]:
    errors: list[str] = []
    brackets = list(annual_tax.brackets)

    if not brackets:
        return [_format_scope("annual_tax.brackets", "no brackets defined")]

    minimums = [bracket.min for bracket in brackets]
    if minimums != sorted(minimums):
        errors.append(
            _format_scope("annual_tax.brackets", "brackets should be sorted by min")
        )

    rates = [bracket.rate for bracket in brackets]
    if rates != sorted(rates):
        errors.append(
            _format_scope("annual_tax.brackets", "marginal rates should not decrease")
        )

    if brackets[-1].max is not None:
        errors.append(
            _format_scope("annual_tax.brackets", "last bracket must be open-ended")
        )

    return errors


def _validate_set_aside(set_aside: SetAsideConfig) -> list[str]:
    errors: list[str] = []

    missing = [
        income_type.value
        for income_type in set_aside.labels
        if income_type not in set_aside.policies
    ]
    if missing:
        errors.append(
            _format_scope(
                "set_aside.policies",
                f"labelled income types without a policy: {sorted(missing)}",
            )
        )

    return errors


def _validate_timezone(timezone_name: str) -> list[str]:
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        return [_format_scope("timezone", f"unknown timezone '{timezone_name}'")]
    return []


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_award(config.award))
    errors.extend(_validate_withholding(config.weekly_withholding))
    errors.extend(_validate_annual_tax(config.annual_tax))
    errors.extend(_validate_set_aside(config.set_aside))
    errors.extend(_validate_timezone(config.timezone))

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured rate tables before publishing them."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific financial years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
