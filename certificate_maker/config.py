"""
Configuration settings for the certificate maker.
Contains default values and configuration options.
"""

import os


def _env_int(name, default):
    """Read an integer from the environment, falling back to the default."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


CONFIG = {
    'render': {
        'default_font_size': 40.0,
        'default_color': '#000000',  # Black
        'default_position': 'center',
        'default_output_dir': os.environ.get('CERTMAKER_OUTPUT_DIR', 'certificates'),
        'default_output_format': None,  # None -> same format as the template
    },
    'batch': {
        # 0 or unset -> one worker per available processing unit
        'parallelism': _env_int('CERTMAKER_PARALLELISM', 0) or (os.cpu_count() or 1),
    },
    'output': {
        'formats': {'PNG': 'png', 'JPEG': 'jpg'},
        'jpeg_quality': 95,
    },
    'samples': {
        'csv_path': os.path.join('excelcsvs', 'sample_names.csv'),
        'names': ['Alice Johnson', 'Bob Smith', 'Charlie Brown', 'Diana Prince', 'Eva Martinez'],
    },
    'debug': {
        'verbose_logging': _env_flag('CERTMAKER_VERBOSE', False)
    }
}
