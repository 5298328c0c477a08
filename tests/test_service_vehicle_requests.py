import pytest

from vehicle_rental.exceptions import ForbiddenError, InvalidInputError, VehicleRequestNotFoundError
from vehicle_rental.services.vehicle_request_service import VehicleRequestService
from vehicle_rental.utils.constants import RequestStatus


@pytest.fixture
def requests_svc(session, clock):
    return VehicleRequestService(session, clock=clock)


def test_submit_request(requests_svc, customer):
    req = requests_svc.submit(customer, {"make": " Tesla ", "model": "Model 3", "year": "2024",
                                         "vehicle_type": "Electric", "message": "For a road trip"})
    assert req.status == RequestStatus.PENDING
    assert (req.make, req.model, req.year) == ("Tesla", "Model 3", 2024)
    assert req.to_dict()["user_id"] == customer.user_id
    assert [r.id for r in requests_svc.for_user(customer)] == [req.id]


def test_year_is_optional(requests_svc, customer):
    assert requests_svc.submit(customer, {"make": "Mazda", "model": "MX-5", "year": ""}).year is None


@pytest.mark.parametrize("data", [
    {"make": "", "model": "Model 3"},
    {"make": "Tesla", "model": "  "},
    {"make": "T" * 61, "model": "Model 3"},
    {"make": "Tesla", "model": "Model 3", "year": "1900"},
    {"make": "Tesla", "model": "Model 3", "year": "2032"},  # clock year is 2030
    {"make": "Tesla", "model": "Model 3", "year": "soon"},
    {"make": "Tesla", "model": "Model 3", "message": "x" * 1001},
])
def test_submit_rejects_bad_input(requests_svc, customer, data):
    with pytest.raises(InvalidInputError):
        requests_svc.submit(customer, data)


def test_users_only_see_their_own(requests_svc, customer, other_customer):
    requests_svc.submit(customer, {"make": "Tesla", "model": "Model Y"})
    assert requests_svc.for_user(other_customer) == []


def test_admin_lists_and_filters_by_status(requests_svc, customer, admin):
    a = requests_svc.submit(customer, {"make": "Tesla", "model": "Model Y"})
    b = requests_svc.submit(customer, {"make": "Kia", "model": "EV6"})
    requests_svc.update_status(admin, b.id, "approved")

    assert {r.id for r in requests_svc.all_requests(admin)} == {a.id, b.id}
    assert [r.id for r in requests_svc.all_requests(admin, "PENDING")] == [a.id]
    assert [r.id for r in requests_svc.all_requests(admin, RequestStatus.APPROVED)] == [b.id]


def test_admin_status_update(requests_svc, customer, admin):
    req = requests_svc.submit(customer, {"make": "Kia", "model": "EV6"})
    assert requests_svc.update_status(admin, req.id, RequestStatus.REJECTED).status == RequestStatus.REJECTED
    # decisions can be revisited
    assert requests_svc.update_status(admin, req.id, RequestStatus.APPROVED).status == RequestStatus.APPROVED


def test_status_update_validation(requests_svc, customer, admin):
    req = requests_svc.submit(customer, {"make": "Kia", "model": "EV6"})
    with pytest.raises(InvalidInputError):
        requests_svc.update_status(admin, req.id, "DONE")
    with pytest.raises(VehicleRequestNotFoundError):
        requests_svc.update_status(admin, 999, RequestStatus.APPROVED)


def test_admin_operations_require_admin(requests_svc, customer):
    req = requests_svc.submit(customer, {"make": "Kia", "model": "EV6"})
    with pytest.raises(ForbiddenError):
        requests_svc.all_requests(customer)
    with pytest.raises(ForbiddenError):
        requests_svc.update_status(customer, req.id, RequestStatus.APPROVED)
