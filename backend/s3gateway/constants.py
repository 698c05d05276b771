"""
Storage addressing constants shared by the key builder, prefix builder
and transfer manager.
"""

# Object key layout: {org_code}/{yyyy}/{mm}/{dd}/{uuid}/{original_filename}
PREFIX_DELIMITER = "/"
DATE_PREFIX_FORMAT = "%Y/%m/%d"

# Maximum UTF-8 byte length of the original filename inside a key
FILE_NAME_MAX_BYTES = 900

# Date fragment lengths understood by the prefix builder
YEAR_LENGTH = 4
YEAR_MONTH_LENGTH = 6
YEAR_MONTH_DAY_LENGTH = 8

DEFAULT_CONTENT_TYPE = "application/octet-stream"
ZIP_CONTENT_TYPE = "application/zip"
