"""Return-key tag sets requested at each query level.

Order matters: tags are sent to the archive in the order listed here.
"""

QUERY_RETRIEVE_LEVEL_TAG = "00080052"

STUDY_LEVEL_TAGS: tuple[str, ...] = (
    "00080005",  # SpecificCharacterSet
    "00080020",  # StudyDate
    "00080030",  # StudyTime
    "00080050",  # AccessionNumber
    "00080056",  # InstanceAvailability
    "00080061",  # ModalitiesInStudy
    "00080090",  # ReferringPhysicianName
    "00081030",  # StudyDescription
    "00100010",  # PatientName
    "00100020",  # PatientID
    "00100030",  # PatientBirthDate
    "00100040",  # PatientSex
    "0020000D",  # StudyInstanceUID
    "00200010",  # StudyID
    "00201206",  # NumberOfStudyRelatedSeries
    "00201208",  # NumberOfStudyRelatedInstances
)

SERIES_LEVEL_TAGS: tuple[str, ...] = (
    "00080021",  # SeriesDate
    "00080031",  # SeriesTime
    "00080060",  # Modality
    "0008103E",  # SeriesDescription
    "00180015",  # BodyPartExamined
    "0020000E",  # SeriesInstanceUID
    "00200011",  # SeriesNumber
    "00201209",  # NumberOfSeriesRelatedInstances
)

IMAGE_LEVEL_TAGS: tuple[str, ...] = (
    "00080016",  # SOPClassUID
    "00080018",  # SOPInstanceUID
    "00200013",  # InstanceNumber
    "00280008",  # NumberOfFrames
    "00280010",  # Rows
    "00280011",  # Columns
)

IMAGE_METADATA_TAGS: tuple[str, ...] = (
    "00080008",  # ImageType
    "00080016",  # SOPClassUID
    "00080018",  # SOPInstanceUID
    "00180050",  # SliceThickness
    "00181164",  # ImagerPixelSpacing
    "00200013",  # InstanceNumber
    "00200020",  # PatientOrientation
    "00200032",  # ImagePositionPatient
    "00200037",  # ImageOrientationPatient
    "00200052",  # FrameOfReferenceUID
    "00201041",  # SliceLocation
    "00280002",  # SamplesPerPixel
    "00280004",  # PhotometricInterpretation
    "00280006",  # PlanarConfiguration
    "00280008",  # NumberOfFrames
    "00280010",  # Rows
    "00280011",  # Columns
    "00280030",  # PixelSpacing
    "00280034",  # PixelAspectRatio
    "00280100",  # BitsAllocated
    "00280101",  # BitsStored
    "00280102",  # HighBit
    "00280103",  # PixelRepresentation
    "00281050",  # WindowCenter
    "00281051",  # WindowWidth
    "00281052",  # RescaleIntercept
    "00281053",  # RescaleSlope
    "00281054",  # RescaleType
)


def study_level_tags() -> tuple[str, ...]:
    """Return keys requested for study-level searches."""
    return STUDY_LEVEL_TAGS


def series_level_tags() -> tuple[str, ...]:
    """Return keys requested for series-level searches."""
    return SERIES_LEVEL_TAGS


def image_level_tags() -> tuple[str, ...]:
    """Return keys requested for instance-level searches."""
    return IMAGE_LEVEL_TAGS


def image_metadata_tags() -> tuple[str, ...]:
    """Return keys a viewer needs to render an instance."""
    return IMAGE_METADATA_TAGS
