import pytest
from pydantic import ValidationError as SchemaValidationError

from booking_api.auth import Actor
from booking_api.constants import ReservationStatus, UserRole
from booking_api.domain.businesses.schemas import BusinessCreate, BusinessUpdate, ServiceCreate, ServiceUpdate
from booking_api.domain.businesses.service import BusinessService
from booking_api.domain.reservations.schemas import ReservationCreate
from booking_api.domain.scheduling.hours import OperatingHours
from booking_api.errors import AuthorizationError, NotFoundError
from booking_api.models import Service

from conftest import at, guest, make_user, monday_hours


@pytest.fixture
def business_service(db, clock):
    return BusinessService(db, clock=clock)


def new_business(business_service, actor, name="Barberia El Roble", **kwargs):
    return business_service.create_business(BusinessCreate(name=name, category="barberia", **kwargs), actor)


def test_create_business_starts_as_draft_with_default_hours(business_service, owner, owner_actor):
    business = new_business(business_service, owner_actor)

    assert business.status == "draft"
    assert business.owner_id == owner.id
    assert business.slug == "barberia-el-roble"
    assert business.timezone == "America/Costa_Rica"
    assert business.email == owner.email
    assert business.operating_hours["sunday"]["is_open"] is False


def test_slug_stays_unique(business_service, owner, owner_actor):
    new_business(business_service, owner_actor)
    second = new_business(business_service, owner_actor)
    third = new_business(business_service, owner_actor)

    assert second.slug == f"barberia-el-roble-{owner.id}"
    assert third.slug == f"barberia-el-roble-{owner.id}-2"


def test_clients_cannot_create_businesses(business_service, client_actor):
    with pytest.raises(AuthorizationError):
        new_business(business_service, client_actor)


def test_business_schema_rejects_unknown_timezone_and_bad_category():
    with pytest.raises(SchemaValidationError):
        BusinessCreate(name="Spa", category="spa", timezone="Mars/Olympus")
    with pytest.raises(SchemaValidationError):
        BusinessCreate(name="Spa", category="gym")
    with pytest.raises(SchemaValidationError):
        BusinessCreate(name="S", category="spa")


def test_publishing_stamps_published_at(business_service, owner_actor, clock):
    business = new_business(business_service, owner_actor)
    business = business_service.update_business(business.id, BusinessUpdate(status="active"), owner_actor)

    assert business.status == "active"
    assert business.published_at == clock.now


def test_only_admin_handles_suspension(business_service, owner_actor, admin_actor):
    business = new_business(business_service, owner_actor)

    with pytest.raises(AuthorizationError):
        business_service.update_business(business.id, BusinessUpdate(status="suspended"), owner_actor)

    business_service.update_business(business.id, BusinessUpdate(status="suspended"), admin_actor)
    with pytest.raises(AuthorizationError):
        business_service.update_business(business.id, BusinessUpdate(status="active"), owner_actor)


def test_other_owner_cannot_update(db, business_service, owner_actor):
    business = new_business(business_service, owner_actor)
    stranger = make_user(db, "stranger@example.com", UserRole.OWNER)
    with pytest.raises(AuthorizationError):
        business_service.update_business(
            business.id, BusinessUpdate(name="Hijacked"), Actor(stranger.id, UserRole.OWNER)
        )


def test_set_operating_hours(business_service, owner_actor):
    business = new_business(business_service, owner_actor)
    hours = OperatingHours.model_validate(monday_hours())

    business = business_service.set_operating_hours(business.id, hours, owner_actor)
    assert business.operating_hours["monday"]["breaks"] == [{"start": "12:00", "end": "13:00"}]
    assert business.operating_hours["tuesday"]["is_open"] is False


# ============================================================================
# SERVICES
# ============================================================================


@pytest.mark.parametrize("duration", [0, 10, 20, 495, 500])
def test_service_duration_must_be_quarter_hours_within_bounds(duration):
    with pytest.raises(SchemaValidationError):
        ServiceCreate(name="Corte", category="corte", duration=duration)


def test_service_price_bounds():
    with pytest.raises(SchemaValidationError):
        ServiceCreate(name="Corte", category="corte", duration=30, price=-1)
    with pytest.raises(SchemaValidationError):
        ServiceCreate(name="Corte", category="corte", duration=30, price=1_000_001)


def test_create_service_counts_on_business(db, business_service, business, owner_actor):
    created = business_service.create_service(
        business.id, ServiceCreate(name="Barba", category="barba", duration=30, price=3000), owner_actor
    )

    db.refresh(business)
    assert business.total_services == 1
    assert created.currency == business.currency
    assert created.is_active is True


def test_service_without_reservations_is_hard_deleted(db, business_service, business, owner_actor):
    created = business_service.create_service(
        business.id, ServiceCreate(name="Barba", category="barba", duration=30), owner_actor
    )
    service_id = created.id

    result = business_service.delete_service(service_id, owner_actor)

    assert result["soft_deleted"] is False
    assert db.get(Service, service_id) is None
    db.refresh(business)
    assert business.total_services == 0


def test_service_with_active_reservations_is_soft_deleted(
    db, business_service, reservation_service, business, owner_actor, clock
):
    created = business_service.create_service(
        business.id, ServiceCreate(name="Corte", category="corte", duration=60), owner_actor
    )
    reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=created.id, date_time=at(10), client=guest()),
        None,
    )

    result = business_service.delete_service(created.id, owner_actor)

    assert result["soft_deleted"] is True
    db.refresh(created)
    assert created.is_active is False
    assert created.deleted_at == clock.now
    db.refresh(business)
    assert business.total_services == 0


def test_service_with_only_past_reservations_is_kept_for_history(
    db, business_service, reservation_service, business, owner_actor
):
    created = business_service.create_service(
        business.id, ServiceCreate(name="Corte", category="corte", duration=60), owner_actor
    )
    reservation = reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=created.id, date_time=at(10), client=guest()),
        None,
    )
    reservation_service.change_status(reservation.id, ReservationStatus.CANCELLED, owner_actor)

    result = business_service.delete_service(created.id, owner_actor)
    assert result["soft_deleted"] is True
    assert db.get(Service, created.id) is not None


def test_list_services_hides_inactive_and_private_from_the_public(business_service, business, owner_actor):
    public = business_service.create_service(
        business.id, ServiceCreate(name="Corte", category="corte", duration=30), owner_actor
    )
    private = business_service.create_service(
        business.id, ServiceCreate(name="VIP", category="corte", duration=30, is_public=False), owner_actor
    )
    retired = business_service.create_service(
        business.id, ServiceCreate(name="Afeitado", category="barba", duration=30), owner_actor
    )
    business_service.update_service(retired.id, ServiceUpdate(is_active=False), owner_actor)

    assert [s.id for s in business_service.list_services(business.id)] == [public.id]
    assert {s.id for s in business_service.list_services(business.id, owner_actor)} == {
        public.id,
        private.id,
        retired.id,
    }


def test_reactivating_a_service_counts_it_again(db, business_service, business, owner_actor):
    created = business_service.create_service(
        business.id, ServiceCreate(name="Corte", category="corte", duration=30), owner_actor
    )
    business_service.update_service(created.id, ServiceUpdate(is_active=False), owner_actor)
    business_service.update_service(created.id, ServiceUpdate(is_active=True, price=4500), owner_actor)

    db.refresh(business)
    db.refresh(created)
    assert business.total_services == 1
    assert created.price == 4500


def test_unknown_business_and_service(business_service, owner_actor):
    with pytest.raises(NotFoundError):
        business_service.get_business(9999)
    with pytest.raises(NotFoundError):
        business_service.delete_service(9999, owner_actor)


def test_new_hours_flag_upcoming_reservations_left_outside(
    business_service, reservation_service, business, service, owner_actor, caplog
):
    morning = reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=service.id, date_time=at(10), client=guest()),
        None,
    )
    reservation_service.create_reservation(
        ReservationCreate(
            business_id=business.id, service_id=service.id, date_time=at(14), client=guest("b@example.com")
        ),
        None,
    )
    afternoon_only = OperatingHours.model_validate(
        {"monday": {"is_open": True, "open_time": "13:00", "close_time": "17:00", "breaks": []}}
    )

    with caplog.at_level("WARNING", logger="booking_api.domain.businesses.service"):
        business_service.set_operating_hours(business.id, afternoon_only, owner_actor)

    assert [r.id for r in business_service.find_reservations_outside_hours(business)] == [morning.id]
    assert f"[{morning.id}]" in caplog.text
