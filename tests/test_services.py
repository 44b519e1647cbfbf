import pytest

from qriscodec.crc import ChecksumStatus
from qriscodec.services.errors import ServiceError
from qriscodec.services.payloads import PayloadService

from samples import STATIC_QRIS, tamper


def test_inspect_flattens_and_checks():
    result = PayloadService().inspect(STATIC_QRIS)

    assert result.fields["countryCode"] == "ID"
    assert result.checksum.status is ChecksumStatus.VALID
    assert result.payload.raw == STATIC_QRIS


def test_inspect_honours_depth_limit():
    with pytest.raises(ServiceError) as excinfo:
        PayloadService(max_depth=1).inspect("620850040000")

    assert excinfo.value.code == "ERR_EXCESSIVE_NESTING"
    assert excinfo.value.status_code == 422
    assert excinfo.value.path == ("62", "50")


def test_empty_payload_is_a_bad_request():
    with pytest.raises(ServiceError) as excinfo:
        PayloadService().inspect("")

    assert excinfo.value.code == "ERR_BAD_PAYLOAD"


def test_make_dynamic_reports_missing_crc_field():
    with pytest.raises(ServiceError) as excinfo:
        PayloadService().make_dynamic(STATIC_QRIS[:-8], amount="1000", render=False)

    assert excinfo.value.code == "ERR_CRC_FIELD"


def test_make_dynamic_rejects_oversized_amount():
    with pytest.raises(ServiceError) as excinfo:
        PayloadService().make_dynamic(tamper(STATIC_QRIS), amount="9" * 100, require_valid_checksum=False, render=False)

    assert excinfo.value.code == "ERR_VALUE_TOO_LONG"


def test_explicit_zero_depth_is_not_replaced_by_default():
    service = PayloadService(max_depth=0)

    assert service.max_depth == 0
    with pytest.raises(ServiceError) as excinfo:
        service.inspect("62070703A01")

    assert excinfo.value.code == "ERR_EXCESSIVE_NESTING"
