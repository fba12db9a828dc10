"""dicomgate - DICOMweb gateway in front of a DIMSE archive."""
