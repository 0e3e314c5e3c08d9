"""Mock clinic backend for local runs and tests.

Flask server with the endpoints the booking client consumes:
- Schedules (hours per date, per weekday, per doctor) and their rows
- Doctors and specialties, with staff CRUD
- Appointment requests, public appointments and their lifecycle
- Staff login

Run with: python mock_api.py
"""
import uuid
from datetime import datetime, timezone
from functools import wraps

from flask import Flask, jsonify, request
from flask_cors import CORS

from clinic_booking import config

API_PREFIX = "/api"

app = Flask(__name__)
CORS(app)

# In-memory storage, rebuilt by reset_store()
doctors = []
schedules = []
specialties = []
requests_store = []
appointments = []
users = []
tokens = {}

CLINIC_HOURS = [
    {"day_of_week": day, "start_time": "08:00", "end_time": "13:00"} for day in range(1, 6)
] + [{"day_of_week": 6, "start_time": "08:00", "end_time": "12:00"}]


def reset_store():
    """Restore the seed data (used between tests)."""
    doctors[:] = [
        {"id": 1, "firstName": "Ana", "lastName": "Cairo", "email": "ana.cairo@clinic.test",
         "phone": None, "active": True, "specialties": [{"id": 1, "name": "General Medicine"}]},
        {"id": 2, "firstName": "Luis", "lastName": "Perez", "email": "luis.perez@clinic.test",
         "phone": None, "active": True, "specialties": [{"id": 2, "name": "Cardiology"}]},
    ]
    schedules[:] = [
        schedule_row(row_id, 1, day, "08:00", "12:00")
        for row_id, day in enumerate((1, 2, 3, 4), start=1)
    ] + [
        schedule_row(row_id, 2, day, "15:00", "18:00")
        for row_id, day in enumerate((1, 3, 5), start=10)
    ]
    specialties[:] = [
        {"id": 1, "name": "General Medicine", "booking_mode": "SLOT", "slot_minutes": 60, "capacity": 1,
         "active": True,
         "default_schedule": [
             {"dia_semana": day, "hora_inicio": "09:00", "hora_fin": "13:00"} for day in range(1, 6)
         ]},
        {"id": 2, "name": "Cardiology", "booking_mode": "REQUEST", "active": True, "default_schedule": []},
        {"id": 3, "name": "Vaccination", "booking_mode": "WALKIN", "active": True, "default_schedule": []},
    ]
    requests_store.clear()
    appointments.clear()
    users[:] = [
        {"id": 1, "nombre": "Admin", "email": "admin@clinic.test", "password": "admin123", "rol": "admin"},
        {"id": 2, "nombre": "Operator", "email": "operator@clinic.test", "password": "operator123", "rol": "operador"},
        {"id": 3, "nombre": "Ana Cairo", "email": "doctor@clinic.test", "password": "doctor123", "rol": "doctor",
         "doctor_id": 1},
    ]
    tokens.clear()


def schedule_row(row_id, doctor_id, weekday, start, end, default=False):
    return {"id": row_id, "doctor_id": doctor_id, "dia_semana": weekday, "hora_inicio": f"{start}:00",
            "hora_fin": f"{end}:00", "activo": True, "por_defecto": default}


def next_id(collection):
    return max((item["id"] for item in collection), default=0) + 1


reset_store()


def js_weekday(iso_date: str) -> int:
    return datetime.strptime(iso_date, "%Y-%m-%d").isoweekday() % 7


def hours_for_weekday(weekday: int):
    active_doctors = {d["id"] for d in doctors if d["active"]}
    hours = set()
    for row in schedules:
        if row["dia_semana"] != weekday or not row["activo"] or row["doctor_id"] not in active_doctors:
            continue
        start = int(row["hora_inicio"][:2])
        end_hour, end_minute = int(row["hora_fin"][:2]), int(row["hora_fin"][3:5])
        last = end_hour if end_minute else end_hour - 1
        hours.update(f"{h:02d}:00" for h in range(start, last + 1))
    return sorted(hours)


def find(collection, item_id):
    return next((item for item in collection if str(item["id"]) == str(item_id)), None)


def current_user():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return tokens.get(header[len("Bearer "):])


def require_auth(*roles):
    """Reject the request with 401/403 unless a user with one of ``roles`` is logged in."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = current_user()
            if user is None:
                return jsonify({"message": "Token missing or invalid"}), 401
            if roles and user["rol"] not in roles:
                return jsonify({"message": "Not allowed"}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator


def own_doctor_data(view):
    """A doctor may only touch rows of their own ``doctor_id``."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        doctor_id = kwargs.get("doctor_id")
        if user["rol"] == "doctor" and doctor_id is not None and user.get("doctor_id") != doctor_id:
            return jsonify({"message": "Doctors can only manage their own schedule"}), 403
        return view(*args, **kwargs)
    return wrapped


def parse_hhmm(value):
    try:
        return datetime.strptime(str(value)[:5], "%H:%M").strftime("%H:%M")
    except ValueError:
        return None


def slot_conflict(fecha, hora, exclude_id=None):
    return any(
        apt["fecha"] == fecha and apt["hora"] == hora and apt["status"] != "CANCELLED"
        and apt["id"] != exclude_id
        for apt in appointments
    )


@app.route(f"{API_PREFIX}/health", methods=["GET"])
def health_check():
    """GET /health - Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    })


@app.route(f"{API_PREFIX}/horarios/horas-disponibles", methods=["GET"])
def hours_for_date():
    """GET /horarios/horas-disponibles?fecha=YYYY-MM-DD - hours minus booked ones."""
    fecha = request.args.get("fecha")
    try:
        weekday = js_weekday(fecha)
    except (TypeError, ValueError):
        return jsonify({"error": "fecha must be YYYY-MM-DD"}), 400

    taken = {apt["hora"] for apt in appointments if apt["fecha"] == fecha and apt["status"] != "CANCELLED"}
    return jsonify([
        {"hora": hour, "disponible": hour not in taken} for hour in hours_for_weekday(weekday)
    ])


@app.route(f"{API_PREFIX}/horarios/dia/<int:weekday>", methods=["GET"])
def hours_by_weekday(weekday):
    """GET /horarios/dia/<0..6> - recurring hours for a weekday."""
    if not 0 <= weekday <= 6:
        return jsonify({"error": "weekday must be 0..6"}), 400
    return jsonify(hours_for_weekday(weekday))


@app.route(f"{API_PREFIX}/horarios/doctor/<int:doctor_id>", methods=["GET"])
def doctor_schedule(doctor_id):
    """GET /horarios/doctor/<id> - schedule rows of one doctor."""
    if find(doctors, doctor_id) is None:
        return jsonify({"message": "Doctor not found"}), 404
    rows = [row for row in schedules if row["doctor_id"] == doctor_id and row["activo"]]
    return jsonify(sorted(rows, key=lambda r: (r["dia_semana"], r["hora_inicio"])))


def validate_schedule(data, partial=False):
    """Return (fields, error message)."""
    fields = {}
    if "dia_semana" in data or not partial:
        weekday = data.get("dia_semana")
        if not isinstance(weekday, int) or not 0 <= weekday <= 6:
            return None, "dia_semana must be 0..6"
        fields["dia_semana"] = weekday
    for key in ("hora_inicio", "hora_fin"):
        if key in data or not partial:
            value = parse_hhmm(data.get(key))
            if value is None:
                return None, f"{key} must be HH:MM"
            fields[key] = value
    return fields, None


@app.route(f"{API_PREFIX}/horarios/doctor/<int:doctor_id>", methods=["POST"])
@require_auth(*config.STAFF_ROLES)
@own_doctor_data
def create_schedule(doctor_id):
    """POST /horarios/doctor/<id> - add one weekly row."""
    if find(doctors, doctor_id) is None:
        return jsonify({"message": "Doctor not found"}), 404
    fields, error = validate_schedule(request.get_json() or {})
    if error:
        return jsonify({"message": error}), 400
    if fields["hora_inicio"] >= fields["hora_fin"]:
        return jsonify({"message": "hora_inicio must be before hora_fin"}), 400

    row = schedule_row(next_id(schedules), doctor_id, fields["dia_semana"],
                       fields["hora_inicio"], fields["hora_fin"])
    schedules.append(row)
    return jsonify(row), 201


@app.route(f"{API_PREFIX}/horarios/<int:schedule_id>", methods=["PUT"])
@require_auth(*config.STAFF_ROLES)
def update_schedule(schedule_id):
    row = find(schedules, schedule_id)
    if row is None:
        return jsonify({"message": "Schedule not found"}), 404
    user = current_user()
    if user["rol"] == "doctor" and user.get("doctor_id") != row["doctor_id"]:
        return jsonify({"message": "Doctors can only manage their own schedule"}), 403

    data = request.get_json() or {}
    fields, error = validate_schedule(data, partial=True)
    if error:
        return jsonify({"message": error}), 400
    start = fields.get("hora_inicio", row["hora_inicio"][:5])
    end = fields.get("hora_fin", row["hora_fin"][:5])
    if start >= end:
        return jsonify({"message": "hora_inicio must be before hora_fin"}), 400

    row.update(hora_inicio=f"{start}:00", hora_fin=f"{end}:00")
    if "dia_semana" in fields:
        row["dia_semana"] = fields["dia_semana"]
    if "activo" in data:
        row["activo"] = bool(data["activo"])
    return jsonify(row)


@app.route(f"{API_PREFIX}/horarios/<int:schedule_id>", methods=["DELETE"])
@require_auth(*config.STAFF_ROLES)
def delete_schedule(schedule_id):
    row = find(schedules, schedule_id)
    if row is None:
        return jsonify({"message": "Schedule not found"}), 404
    user = current_user()
    if user["rol"] == "doctor" and user.get("doctor_id") != row["doctor_id"]:
        return jsonify({"message": "Doctors can only manage their own schedule"}), 403
    schedules.remove(row)
    return "", 204


@app.route(f"{API_PREFIX}/horarios/doctor/<int:doctor_id>/generar-defaults", methods=["POST"])
@require_auth(*config.STAFF_ROLES)
@own_doctor_data
def generate_default_schedule(doctor_id):
    """POST /horarios/doctor/<id>/generar-defaults - rows from the specialty's default schedule."""
    doctor = find(doctors, doctor_id)
    if doctor is None:
        return jsonify({"message": "Doctor not found"}), 404
    defaults = []
    for assigned in doctor["specialties"]:
        specialty = find(specialties, assigned["id"])
        if specialty and specialty.get("default_schedule"):
            defaults = specialty["default_schedule"]
            break
    if not defaults:
        return jsonify({"message": "The doctor's specialty has no default schedule"}), 400

    schedules[:] = [row for row in schedules if not (row["doctor_id"] == doctor_id and row["por_defecto"])]
    created = []
    for item in defaults:
        row = schedule_row(next_id(schedules), doctor_id, item["dia_semana"],
                           item["hora_inicio"], item["hora_fin"], default=True)
        schedules.append(row)
        created.append(row)
    return jsonify({"message": f"{len(created)} default rows created", "horarios": created}), 201


@app.route(f"{API_PREFIX}/doctors", methods=["GET"])
def list_doctors():
    specialty_id = request.args.get("specialtyId")
    active = request.args.get("active")
    result = doctors
    if specialty_id:
        result = [d for d in result if any(str(s["id"]) == specialty_id for s in d["specialties"])]
    if active is not None:
        result = [d for d in result if d["active"] == (active == "true")]
    return jsonify(result)


@app.route(f"{API_PREFIX}/doctors/<int:doctor_id>", methods=["GET"])
def get_doctor(doctor_id):
    doctor = find(doctors, doctor_id)
    if doctor is None:
        return jsonify({"message": "Doctor not found"}), 404
    return jsonify(doctor)


def specialty_refs(specialty_ids):
    """``[{"id", "name"}]`` for ``specialty_ids``, or None if one is unknown."""
    refs = []
    for specialty_id in specialty_ids or []:
        specialty = find(specialties, specialty_id)
        if specialty is None:
            return None
        refs.append({"id": specialty["id"], "name": specialty["name"]})
    return refs


@app.route(f"{API_PREFIX}/doctors", methods=["POST"])
@require_auth("admin", "operador")
def create_doctor():
    data = request.get_json() or {}
    if not data.get("firstName") or not data.get("lastName"):
        return jsonify({
            "message": "Validation failed",
            "errors": [{"param": "firstName", "msg": "First and last name are required"}],
        }), 422
    refs = specialty_refs(data.get("specialtyIds"))
    if refs is None:
        return jsonify({"message": "Specialty not found"}), 404

    doctor = {
        "id": next_id(doctors),
        "firstName": data["firstName"],
        "lastName": data["lastName"],
        "email": data.get("email"),
        "phone": data.get("phone"),
        "active": True,
        "specialties": refs,
    }
    doctors.append(doctor)
    return jsonify(doctor), 201


@app.route(f"{API_PREFIX}/doctors/<int:doctor_id>", methods=["PATCH"])
@require_auth("admin", "operador")
def update_doctor(doctor_id):
    doctor = find(doctors, doctor_id)
    if doctor is None:
        return jsonify({"message": "Doctor not found"}), 404
    data = request.get_json() or {}
    doctor.update({k: v for k, v in data.items() if k in ("firstName", "lastName", "email", "phone")})
    return jsonify(doctor)


@app.route(f"{API_PREFIX}/doctors/<int:doctor_id>/status", methods=["PATCH"])
@require_auth("admin", "operador")
def set_doctor_status(doctor_id):
    doctor = find(doctors, doctor_id)
    if doctor is None:
        return jsonify({"message": "Doctor not found"}), 404
    active = (request.get_json() or {}).get("active")
    if not isinstance(active, bool):
        return jsonify({"message": "active must be true or false"}), 422
    doctor["active"] = active
    return jsonify(doctor)


@app.route(f"{API_PREFIX}/doctors/<int:doctor_id>/specialties", methods=["POST"])
@require_auth("admin", "operador")
def assign_doctor_specialties(doctor_id):
    doctor = find(doctors, doctor_id)
    if doctor is None:
        return jsonify({"message": "Doctor not found"}), 404
    specialty_ids = (request.get_json() or {}).get("specialtyIds")
    if not specialty_ids:
        return jsonify({"message": "specialtyIds must not be empty"}), 422
    refs = specialty_refs(specialty_ids)
    if refs is None:
        return jsonify({"message": "Specialty not found"}), 404
    doctor["specialties"] = refs
    return jsonify(doctor)


@app.route(f"{API_PREFIX}/specialties", methods=["GET"])
def list_specialties():
    mode = request.args.get("booking_mode")
    active = request.args.get("active")
    result = specialties
    if mode:
        result = [s for s in result if s["booking_mode"] == mode]
    if active is not None:
        result = [s for s in result if s["active"] == (active == "true")]
    return jsonify(result)


@app.route(f"{API_PREFIX}/specialties/<int:specialty_id>", methods=["GET"])
def get_specialty(specialty_id):
    specialty = find(specialties, specialty_id)
    if specialty is None:
        return jsonify({"message": "Specialty not found"}), 404
    return jsonify(specialty)


@app.route(f"{API_PREFIX}/specialties", methods=["POST"])
@require_auth("admin")
def create_specialty():
    data = request.get_json() or {}
    if data.get("booking_mode") not in ("SLOT", "REQUEST", "WALKIN"):
        return jsonify({
            "message": "Invalid booking mode. Must be SLOT, REQUEST or WALKIN",
            "errors": [{"param": "booking_mode", "msg": "Invalid booking mode"}]
        }), 422
    specialty = {
        "id": max((s["id"] for s in specialties), default=0) + 1,
        "name": data.get("name", ""),
        "booking_mode": data["booking_mode"],
        "description": data.get("description"),
        "active": data.get("active", True),
    }
    specialties.append(specialty)
    return jsonify(specialty), 201


@app.route(f"{API_PREFIX}/specialties/<int:specialty_id>", methods=["PATCH"])
@require_auth("admin")
def update_specialty(specialty_id):
    specialty = find(specialties, specialty_id)
    if specialty is None:
        return jsonify({"message": "Specialty not found"}), 404
    data = request.get_json() or {}
    specialty.update({k: v for k, v in data.items() if k != "id"})
    return jsonify(specialty)


@app.route(f"{API_PREFIX}/specialties/<int:specialty_id>", methods=["DELETE"])
@require_auth("admin")
def delete_specialty(specialty_id):
    specialty = find(specialties, specialty_id)
    if specialty is None:
        return jsonify({"message": "Specialty not found"}), 404
    specialties.remove(specialty)
    return "", 204


@app.route(f"{API_PREFIX}/clinic-hours", methods=["GET"])
def clinic_hours():
    return jsonify(CLINIC_HOURS)


@app.route(f"{API_PREFIX}/requests", methods=["POST"])
def create_request():
    """POST /requests - patient asks for an appointment, staff assign it later."""
    data = request.get_json() or {}
    specialty = find(specialties, data.get("specialty_id"))
    if specialty is None:
        return jsonify({"error": "Specialty not found"}), 404
    if specialty["booking_mode"] != "REQUEST":
        return jsonify({"error": "This specialty does not take requests", "code": "WRONG_MODE"}), 400

    item = {
        "id": len(requests_store) + 1,
        "status": "pending",
        "urgent": False,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "specialty_id": specialty["id"],
        "doctor_id": data.get("doctor_id"),
        "patient_data": data.get("patient") or {},
        "note": data.get("note"),
    }
    requests_store.append(item)
    return jsonify(item), 201


@app.route(f"{API_PREFIX}/requests", methods=["GET"])
@require_auth(*config.STAFF_ROLES)
def list_requests():
    status = request.args.get("status")
    dni = request.args.get("dni")
    result = requests_store
    if status:
        result = [r for r in result if r["status"] == status]
    if dni:
        result = [r for r in result if r["patient_data"].get("dni") == dni]
    return jsonify(result)


@app.route(f"{API_PREFIX}/requests/<int:request_id>/assign", methods=["PATCH"])
@require_auth("admin", "operador")
def assign_request(request_id):
    item = find(requests_store, request_id)
    if item is None:
        return jsonify({"message": "Request not found"}), 404
    if item["status"] != "pending":
        return jsonify({"message": "Only pending requests can be assigned"}), 409
    data = request.get_json() or {}
    item.update(status="assigned", fecha=data.get("fecha"), hora=data.get("hora"),
                doctor_id=data.get("doctor_id", item["doctor_id"]))
    return jsonify(item)


@app.route(f"{API_PREFIX}/requests/<int:request_id>/cancel", methods=["PATCH"])
@require_auth("admin", "operador")
def cancel_request(request_id):
    item = find(requests_store, request_id)
    if item is None:
        return jsonify({"message": "Request not found"}), 404
    if item["status"] != "pending":
        return jsonify({"message": "Only pending requests can be cancelled"}), 409
    item.update(status="cancelled", reason=(request.get_json() or {}).get("reason"))
    return jsonify(item)


@app.route(f"{API_PREFIX}/appointments/public", methods=["POST"])
def create_public_appointment():
    """POST /appointments/public - book a date/hour directly."""
    data = request.get_json() or {}
    specialty = find(specialties, data.get("especialidadId"))
    if specialty is None:
        return jsonify({"error": "Specialty not found"}), 404
    if specialty["booking_mode"] == "WALKIN":
        return jsonify({"error": "Walk-in specialty, no appointment needed", "code": "WALKIN_SPECIALTY"}), 400

    fecha, hora = data.get("fecha"), data.get("hora")
    if not fecha or not hora:
        return jsonify({"error": "fecha and hora are required"}), 400
    try:
        offered = hours_for_weekday(js_weekday(fecha))
    except ValueError:
        return jsonify({"error": "fecha must be YYYY-MM-DD"}), 400
    if hora not in offered:
        return jsonify({"error": f"{hora} is not offered on {fecha}"}), 400

    if slot_conflict(fecha, hora):
        return jsonify({"error": "That time was just booked. Pick another one.", "code": "SLOT_TAKEN"}), 409

    appointment = {
        "id": len(appointments) + 1,
        "confirmation": f"APT-{uuid.uuid4().hex[:6].upper()}",
        "status": "PENDING",
        "fecha": fecha,
        "hora": hora,
        "doctorId": data.get("doctorId"),
        "especialidadId": specialty["id"],
        "patient": data.get("patient") or {},
        "motivo": data.get("motivo"),
    }
    appointments.append(appointment)
    return jsonify(appointment), 201


@app.route(f"{API_PREFIX}/appointments", methods=["GET"])
@require_auth(*config.STAFF_ROLES)
def list_appointments():
    date = request.args.get("date")
    doctor_id = request.args.get("doctorId")
    result = appointments
    if date:
        result = [a for a in result if a["fecha"] == date]
    if doctor_id:
        result = [a for a in result if str(a["doctorId"]) == doctor_id]
    return jsonify(result)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>/status", methods=["PATCH"])
@require_auth(*config.STAFF_ROLES)
def update_appointment_status(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    status = (request.get_json() or {}).get("status")
    if status not in ("PENDING", "CONFIRMED", "CANCELLED", "COMPLETED"):
        return jsonify({"message": f"Invalid status: {status}"}), 422
    appointment["status"] = status
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>", methods=["GET"])
@require_auth(*config.STAFF_ROLES)
def get_appointment(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>", methods=["PATCH"])
@require_auth("admin", "operador")
def update_appointment(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    data = request.get_json() or {}
    appointment.update({k: v for k, v in data.items() if k in ("motivo", "notas", "doctorId")})
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>/reschedule", methods=["PATCH"])
@require_auth("admin", "operador")
def reschedule_appointment(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    if appointment["status"] not in ("PENDING", "CONFIRMED"):
        return jsonify({"message": f"Cannot reschedule a {appointment['status']} appointment"}), 409

    data = request.get_json() or {}
    fecha, hora = data.get("fecha"), parse_hhmm(data.get("hora"))
    try:
        offered = hours_for_weekday(js_weekday(fecha))
    except (TypeError, ValueError):
        return jsonify({"message": "fecha must be YYYY-MM-DD"}), 400
    if hora not in offered:
        return jsonify({"message": f"{hora} is not offered on {fecha}"}), 400
    if slot_conflict(fecha, hora, exclude_id=appointment["id"]):
        return jsonify({"message": "That time was just booked. Pick another one.", "code": "SLOT_TAKEN"}), 409

    appointment.update(
        rescheduled_from={"fecha": appointment["fecha"], "hora": appointment["hora"]},
        fecha=fecha,
        hora=hora,
        reschedule_reason=data.get("reason"),
    )
    if data.get("doctorId") is not None:
        appointment["doctorId"] = data["doctorId"]
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>/confirm", methods=["PATCH"])
@require_auth(*config.STAFF_ROLES)
def confirm_attendance(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    if appointment["status"] != "PENDING":
        return jsonify({"message": "Only pending appointments can be confirmed"}), 409
    appointment["status"] = "CONFIRMED"
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>/complete", methods=["PATCH"])
@require_auth("doctor", "admin")
def complete_appointment(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    if appointment["status"] in ("CANCELLED", "COMPLETED"):
        return jsonify({"message": f"Cannot complete a {appointment['status']} appointment"}), 409
    data = request.get_json() or {}
    appointment.update(
        status="COMPLETED",
        notes=data.get("notes"),
        diagnosis=data.get("diagnosis"),
        treatment=data.get("treatment"),
    )
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/appointments/<int:appointment_id>", methods=["DELETE"])
@require_auth(*config.STAFF_ROLES)
def cancel_appointment(appointment_id):
    appointment = find(appointments, appointment_id)
    if appointment is None:
        return jsonify({"message": "Appointment not found"}), 404
    appointment["status"] = "CANCELLED"
    return jsonify(appointment)


@app.route(f"{API_PREFIX}/auth/login", methods=["POST"])
def login():
    data = request.get_json() or {}
    user = next((u for u in users if u["email"] == data.get("email")), None)
    if user is None or user["password"] != data.get("password"):
        return jsonify({"message": "Invalid credentials"}), 401

    token = uuid.uuid4().hex
    public = {k: v for k, v in user.items() if k != "password"}
    tokens[token] = public
    return jsonify({"token": token, "usuario": public})


@app.route(f"{API_PREFIX}/auth/profile", methods=["GET"])
@require_auth()
def profile():
    return jsonify(current_user())


@app.route(f"{API_PREFIX}/auth/verify", methods=["GET"])
@require_auth()
def verify():
    return jsonify({"valid": True, "usuario": current_user()})


def print_startup_info():
    """Print server startup information."""
    print("=" * 70)
    print("MOCK CLINIC API")
    print("=" * 70)
    print(f"\nServer: http://localhost:{config.MOCK_API_PORT}{API_PREFIX}")
    print(f"Doctors: {len(doctors)}")
    for specialty in specialties:
        print(f"   - {specialty['name']} ({specialty['booking_mode']})")
    print("\nStaff logins:")
    for user in users:
        print(f"   {user['email']} / {user['password']} ({user['rol']})")
    print("\nServer ready! Waiting for requests...")
    print("=" * 70)


if __name__ == '__main__':
    print_startup_info()
    app.run(
        debug=True,
        port=config.MOCK_API_PORT,
        host='0.0.0.0'
    )
