from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from ..core.timeutils import as_utc

# Incoming timestamps are stored in UTC; naive values are taken as UTC already.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
