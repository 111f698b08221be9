# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from pathlib import Path

from core.errors import NoValidUsersError
from core.pipeline import PipelineOrchestrator
from core.reporting import compute_metrics, issue_summary, risk_distribution
from utils.config import Config
from utils.csv_utils import CSVHandler
from utils.import_cache import LastImportCache
from utils.sample_data import generate_sample_csv


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> str:
    """Setup logging configuration with both console and file output"""
    from datetime import datetime

    # Create logs directory if it doesn't exist
    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_path / f"adhuntx_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def analyze_text(text: str, config: Config, output_csv: str = None, use_cache: bool = False):
    """Run the pipeline on export text and report the results"""
    logger = logging.getLogger(__name__)

    pipeline = PipelineOrchestrator.from_policy(config.normalization_policy())
    users = pipeline.run(text)

    metrics = compute_metrics(users)
    logger.info(f"Users: {metrics.total_users}, critical: {metrics.critical_risk_count}, "
                f"high: {metrics.high_risk_count}, average score: {metrics.avg_risk_score}")
    logger.info(f"Dormant: {metrics.dormant_count}, MFA adoption: {metrics.mfa_adoption_rate}%")
    logger.info(f"Risk distribution: {risk_distribution(users)}")
    logger.info(f"Top issues: {issue_summary(users)}")

    if output_csv:
        CSVHandler.write_text(CSVHandler.export_users(users), output_csv)

    if use_cache:
        LastImportCache(config.cache_path, config.cache_limit).save(users)

    return users


def handle_analyze(args, config) -> int:
    logger = logging.getLogger(__name__)

    if not Path(args.input_csv).exists():
        logger.error(f"Input file not found: {args.input_csv}")
        return 1

    text = CSVHandler.read_text(args.input_csv)
    analyze_text(text, config, args.output, args.cache)
    return 0


def handle_sample(args, config) -> int:
    analyze_text(generate_sample_csv(), config, args.output)
    return 0


def handle_template(args, config) -> int:
    CSVHandler.write_text(CSVHandler.template_csv(), args.output_csv)
    return 0


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(description="ADhuntX directory account risk analyzer")
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Command')

    analyze_parser = subparsers.add_parser('analyze', help='Score a directory export CSV')
    analyze_parser.add_argument('input_csv', help='Input CSV file path')
    analyze_parser.add_argument('--output', help='Write the risk report CSV to this path')
    analyze_parser.add_argument('--cache', action='store_true', help='Store a sample of the results')

    sample_parser = subparsers.add_parser('sample', help='Score the built-in sample dataset')
    sample_parser.add_argument('--output', help='Write the risk report CSV to this path')

    template_parser = subparsers.add_parser('template', help='Write an empty input template')
    template_parser.add_argument('output_csv', help='Output CSV file path')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = Config()
    if not config.validate():
        logger.warning(f"Ignoring invalid settings, using defaults: {config.get_invalid_vars()}")

    handlers = {
        'analyze': handle_analyze,
        'sample': handle_sample,
        'template': handle_template,
    }

    try:
        return handlers[args.command](args, config)
    except NoValidUsersError as e:
        logger.error(f"{e} {NoValidUsersError.USER_MESSAGE}")
        return 1
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
