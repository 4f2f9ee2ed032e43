"""
Wire message definitions.

Inbound: the storage notification envelope placed on the job queue.
Outbound: the job status message sent to the result queue, and the
item layout written to the result table.
"""

from datetime import timedelta

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from wordfreq.constants import JobCompleteStatus
from wordfreq.types.job import JobResult


class S3Bucket(BaseModel):
    name: str = Field(min_length=1, validation_alias=AliasChoices("Name", "name"))


class S3Object(BaseModel):
    key: str = Field(min_length=1, validation_alias=AliasChoices("Key", "key"))


class S3Entity(BaseModel):
    bucket: S3Bucket = Field(validation_alias=AliasChoices("Bucket", "bucket"))
    object_: S3Object = Field(validation_alias=AliasChoices("Object", "object"))


class S3EventRecord(BaseModel):
    """A single object event inside a notification."""

    aws_region: str = Field(default="", validation_alias=AliasChoices("awsRegion", "AwsRegion"))
    event_name: str = Field(default="", validation_alias=AliasChoices("EventName", "eventName"))
    s3: S3Entity = Field(validation_alias=AliasChoices("S3", "s3"))


class S3EventNotification(BaseModel):
    """
    Storage notification envelope.

    Only the fields the worker uses are modelled; anything else in the
    message is ignored.
    """

    event: str = Field(default="", validation_alias=AliasChoices("Event", "event"))
    records: list[S3EventRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("Records", "records"),
    )


class JobSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bucket: str = Field(alias="Bucket")
    key: str = Field(alias="Key")
    region: str = Field(alias="Region")


class WordCount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    word: str = Field(alias="Word")
    count: int = Field(alias="Count", ge=1)


class JobResultMessage(BaseModel):
    """
    Status message published for every job, successful or not.
    Consumed by clients polling for the outcome of their upload.
    """

    model_config = ConfigDict(populate_by_name=True)

    job: JobSummary = Field(alias="Job")
    words: list[WordCount] = Field(default_factory=list, alias="Words")
    duration: int = Field(alias="Duration", description="Nanoseconds")
    status: JobCompleteStatus = Field(alias="Status")
    status_message: str = Field(default="", alias="StatusMessage")

    @classmethod
    def from_result(cls, result: JobResult) -> "JobResultMessage":
        location = result.job.location
        return cls(
            job=JobSummary(bucket=location.bucket, key=location.key, region=location.region),
            words=[WordCount(word=w.word, count=w.count) for w in result.words],
            duration=result.duration // timedelta(microseconds=1) * 1000,
            status=result.status,
            status_message=result.status_message,
        )

    @property
    def elapsed(self) -> timedelta:
        return timedelta(microseconds=self.duration / 1000)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ResultRecord(BaseModel):
    """Item layout in the result table, keyed by Filename."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(alias="Filename")
    words: dict[str, int] = Field(default_factory=dict, alias="Words")

    @classmethod
    def from_result(cls, result: JobResult) -> "ResultRecord":
        return cls(
            filename=result.job.location.filename,
            words={w.word: w.count for w in result.words},
        )

    def to_item(self) -> dict:
        return self.model_dump(by_alias=True)
