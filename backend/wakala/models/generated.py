from sqlalchemy import Column, ForeignKey, Index, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class BookingServices(Base):
    __tablename__ = 'booking_services'

    name_en = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    name_ar = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    slots = relationship('AvailabilitySlots', back_populates='service')
    applications = relationship('WakalaApplications', back_populates='service')


class WorkingHoursConfig(Base):
    __tablename__ = 'working_hours_config'

    day_of_week = Column(Integer, nullable=False, unique=True)  # 1 = Monday ... 7 = Sunday
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    last_appointment_time = Column(Text, nullable=False)
    slot_interval_minutes = Column(Integer, nullable=False, server_default=text('30'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    day_name_en = Column(Text)
    day_name_ar = Column(Text)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class DaySpecificHours(Base):
    __tablename__ = 'day_specific_hours'

    date = Column(Text, nullable=False, unique=True)  # YYYY-MM-DD
    is_holiday = Column(Integer, nullable=False, server_default=text('0'))
    break_times = Column(Text, nullable=False, server_default=text("'[]'"))  # [{"start": "12:00", "end": "13:00"}]
    id = Column(Integer, primary_key=True)
    start_time = Column(Text)
    end_time = Column(Text)
    last_appointment_time = Column(Text)
    slot_interval_minutes = Column(Integer)
    holiday_reason_en = Column(Text)
    holiday_reason_ar = Column(Text)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class BlockedDates(Base):
    __tablename__ = 'blocked_dates'

    date = Column(Text, nullable=False, unique=True)
    reason_en = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    reason_ar = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class AvailabilitySlots(Base):
    __tablename__ = 'availability_slots'
    __table_args__ = (
        UniqueConstraint('service_id', 'date', 'start_time'),
        Index('ix_availability_slots_service_date', 'service_id', 'date'),
    )

    service_id = Column(ForeignKey('booking_services.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)  # HH:MM
    end_time = Column(Text, nullable=False)
    is_available = Column(Integer, nullable=False, server_default=text('1'))
    is_blocked_by_admin = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    service = relationship('BookingServices', back_populates='slots')


class WakalaApplications(Base):
    __tablename__ = 'wakala_applications'

    service_id = Column(ForeignKey('booking_services.id'), nullable=False)
    full_name = Column(Text, nullable=False)
    booking_date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'submitted'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    # Slots survive a cancelled booking only as history; regeneration may drop them
    slot_id = Column(ForeignKey('availability_slots.id', ondelete='SET NULL'))
    second_slot_id = Column(ForeignKey('availability_slots.id', ondelete='SET NULL'))
    member_id = Column(Text)
    email = Column(Text)
    phone = Column(Text)
    service_type = Column(Text)
    assigned_admin_id = Column(Text)
    cancelled_at = Column(Text)
    cancelled_by_user = Column(Integer, nullable=False, server_default=text('0'))

    service = relationship('BookingServices', back_populates='applications')
