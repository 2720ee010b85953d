# src/flowbench/engine/samples.py
"""Built-in demo pipeline shown to a user who has not written anything yet."""

from types import MappingProxyType

from flowbench.contracts import ContentEntry

_SAMPLE_USERS = '''from pyspark import pipelines as dp
from pyspark.sql.functions import col

# This file defines a sample transformation.
# Edit the sample below or add new transformations
# using "+ Add" in the file browser.

@dp.table
def sample_users_dec_23_1506():
    return (
        spark.read.table("samples.wanderbricks.users")
        .select("user_id", "email", "name", "user_type")
    )
'''

_SAMPLE_AGGREGATION = '''from pyspark import pipelines as dp
from pyspark.sql.functions import col, count, count_if
from utilities import utils

# This file defines a sample transformation.
# Edit the sample below or add new transformations
# using "+ Add" in the file browser.

@dp.table
def sample_aggregation_dec_23_1506():
    return (
        spark.read.table("sample_users_dec_23_1506")
        .withColumn("valid_email", utils.is_valid_email(col("email")))
        .groupBy(col("user_type"))
        .agg(
            count("user_id").alias("total_count"),
            count_if("valid_email").alias("count_valid_emails")
        )
    )
'''

# Read-only: every Workspace shares this mapping
SAMPLE_CONTENTS = MappingProxyType(
    {
        "sample-users": ContentEntry(content=_SAMPLE_USERS, language="python"),
        "sample-aggregation": ContentEntry(content=_SAMPLE_AGGREGATION, language="python"),
    }
)
