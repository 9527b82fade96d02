import argparse
import json
import sys
from pathlib import Path

import pandas as pd
from tabulate import tabulate

from demand_planner.logging_setup import logger, log_exception
from demand_planner.exceptions import PlannerError, ValidationError
from demand_planner.services.forecast_service import ForecastService
from demand_planner.services.optimization_service import InventoryOptimizationService
from demand_planner.services.scenario_service import ScenarioService
from demand_planner.utils.math_utils import coerce_number
from demand_planner.utils.validation import normalize_sales_records, validate_sales_data


def load_rows(path):
    """Load records from a CSV or JSON file.

    Args:
        path: File path

    Returns:
        List of row dictionaries, or the parsed JSON document

    Raises:
        ValidationError: If the file type is unsupported or the file cannot be parsed
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix not in ('.json', '.csv'):
        raise ValidationError(f"Unsupported file type: {suffix}", code='UNSUPPORTED_FILE')

    try:
        if suffix == '.json':
            with open(path, 'r', encoding='utf-8') as input_file:
                return json.load(input_file)

        frame = pd.read_csv(path)
    except ValueError as e:
        # json.JSONDecodeError and the pandas parser errors are ValueErrors
        raise ValidationError(
            f"Could not parse {path.name}: {str(e)}",
            code='INVALID_FILE',
            details={'path': str(path)}
        ) from e

    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient='records')


def parse_parameters(values):
    """Parse ``key=value`` pairs into a parameter dictionary."""
    parameters = {}
    for item in values or []:
        key, separator, value = item.partition('=')
        if not separator:
            raise ValidationError(f"Parameter must be key=value: {item}", code='INVALID_PARAMETER')
        number = coerce_number(value)
        parameters[key.strip()] = number if number is not None else value
    return parameters


def emit(args, payload, tables):
    """Print a result either as JSON or as tables."""
    if args.json:
        print(json.dumps(payload, indent=2, default=str))
        return

    for title, rows in tables:
        if not rows:
            continue
        print(title)
        print(tabulate(rows, headers='keys', floatfmt='.2f'))
        print()


def run_validate(args):
    report = validate_sales_data(load_rows(args.sales))
    emit(args, report, [
        ('Validation', [{'valid': report['valid'], 'errors': len(report['errors']), 'warnings': len(report['warnings'])}]),
        ('Errors', [{'error': error} for error in report['errors']]),
        ('Warnings', [{'warning': warning} for warning in report['warnings']])
    ])
    return report['valid']


def run_seasonality(args):
    service = ForecastService()
    result = service.detect_seasonality(normalize_sales_records(load_rows(args.sales)))
    payload = result.to_dict()

    summary = {key: payload[key] for key in ('detected', 'pattern', 'strength', 'weekly_strength', 'monthly_strength')}
    profile = payload['day_of_week_profile']
    emit(args, payload, [
        ('Seasonality', [summary]),
        ('Day of week', profile['averages'] if profile else []),
        ('Recommendation', [{'recommendation': payload['recommendation']}])
    ])
    return True


def run_forecast(args):
    service = ForecastService()
    result = service.generate_forecast(
        load_rows(args.sales),
        forecast_periods=args.periods,
        include_external_factors=not args.no_external_factors
    )
    payload = result.to_dict()

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as output_file:
            json.dump(payload, output_file, indent=2, default=str)

    emit(args, payload, [
        ('Forecast', payload['forecast']),
        ('Insights', [{'insight': insight} for insight in payload['insights']])
    ])
    return True


def run_optimize(args):
    service = InventoryOptimizationService()
    forecast = load_rows(args.forecast) if args.forecast else None
    report = service.optimize(load_rows(args.products), load_rows(args.sales) if args.sales else [], forecast)
    payload = report.to_dict()

    emit(args, payload, [
        ('Health metrics', payload['health_metrics']),
        ('ABC classification', payload['classified_products']),
        ('Optimal orders', payload['optimal_orders']),
        ('Summary', [payload['summary']])
    ])
    return True


def run_scenario(args):
    service = ScenarioService()
    scenario = {'type': args.type, 'parameters': parse_parameters(args.param)}
    products = load_rows(args.products) if args.products else None
    result = service.analyze(load_rows(args.forecast), scenario, products, strict=args.strict or None)
    payload = result.to_dict()

    emit(args, payload, [
        ('Perturbed forecast', payload['perturbed_forecast']),
        ('Stock impact', payload['stock_impact']),
        ('Summary', [payload['summary']])
    ])
    return True


COMMANDS = {
    'validate': run_validate,
    'seasonality': run_seasonality,
    'forecast': run_forecast,
    'optimize': run_optimize,
    'scenario': run_scenario
}


def build_parser():
    parser = argparse.ArgumentParser(description='Demand Planner')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    validate_parser = subparsers.add_parser('validate', help='Validate a sales data file')
    validate_parser.add_argument('--sales', required=True, help='Sales history (CSV or JSON)')

    seasonality_parser = subparsers.add_parser('seasonality', help='Detect weekly or monthly seasonality')
    seasonality_parser.add_argument('--sales', required=True, help='Sales history (CSV or JSON)')

    forecast_parser = subparsers.add_parser('forecast', help='Generate a moving-average demand forecast')
    forecast_parser.add_argument('--sales', required=True, help='Sales history (CSV or JSON)')
    forecast_parser.add_argument('--periods', type=int, default=None, help='Number of days to forecast')
    forecast_parser.add_argument('--output', help='Write the forecast as JSON to this file')
    forecast_parser.add_argument('--no-external-factors', action='store_true',
                                 help='Do not collect external demand factors')

    optimize_parser = subparsers.add_parser('optimize', help='Calculate inventory optimization metrics')
    optimize_parser.add_argument('--products', required=True, help='Product catalog (CSV or JSON)')
    optimize_parser.add_argument('--sales', help='Sales history (CSV or JSON)')
    optimize_parser.add_argument('--forecast', help='Forecast (JSON)')

    scenario_parser = subparsers.add_parser('scenario', help='Run a what-if scenario')
    scenario_parser.add_argument('--forecast', required=True, help='Base forecast (JSON)')
    scenario_parser.add_argument('--type', required=True,
                                 help='demand_shock, supply_disruption, promotion or custom')
    scenario_parser.add_argument('--param', action='append', metavar='KEY=VALUE',
                                 help='Scenario parameter, e.g. multiplier=1.5')
    scenario_parser.add_argument('--products', help='Products for the stock impact (CSV or JSON)')
    scenario_parser.add_argument('--strict', action='store_true', help='Fail on unknown scenario types')

    return parser


def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    log_info = logger.command_start_log(args.command, vars(args))
    try:
        success = COMMANDS[args.command](args)
    except (PlannerError, OSError) as e:
        log_exception('app', e, f"Command {args.command} failed")
        print(f"Error: {str(e)}", file=sys.stderr)
        logger.command_end_log(log_info, success=False)
        return 1

    logger.command_end_log(log_info, success=success)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
