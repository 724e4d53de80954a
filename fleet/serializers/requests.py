from rest_framework import serializers

from fleet.models import EquipmentType, Priority, RequestStatus, TransportRequest, User, priority_label


class RequestCreateSerializer(serializers.Serializer):
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    priority = serializers.IntegerField()
    equipment_type = serializers.CharField(max_length=16)
    pickup_room_id = serializers.IntegerField(min_value=1)
    destination_room_id = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)
    estimated_duration_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class RequestStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=16)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class RequestAssignSerializer(serializers.Serializer):
    # ``porter_id`` is the name older clients send
    assignee_id = serializers.IntegerField(min_value=1, required=False)
    porter_id = serializers.IntegerField(min_value=1, required=False)
    equipment_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        assignee = attrs.get('assignee_id') or attrs.get('porter_id')
        if not assignee:
            raise serializers.ValidationError({'assignee_id': 'assignee_id or porter_id is required'})
        attrs['assignee_id'] = assignee
        return attrs


class RequestListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RequestStatus.choices, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False)
    requested_by = serializers.IntegerField(min_value=1, required=False)
    equipment_type = serializers.ChoiceField(choices=EquipmentType.choices, required=False)
    priority = serializers.ChoiceField(choices=Priority.choices, required=False)


def _room(room) -> dict | None:
    if room is None:
        return None
    return {'id': room.id, 'name': room.name, 'room_type': room.room_type}


def _user(user: User | None) -> dict | None:
    if user is None:
        return None
    return {'id': user.id, 'employee_code': user.employee_code, 'full_name': user.display_name, 'role': user.role}


def _iso(value):
    return value.isoformat() if value else None


def serialize_request(req: TransportRequest, *, history: bool = False) -> dict:
    data = {
        'id': str(req.id),
        'patient_name': req.patient_name,
        'priority': req.priority,
        'priority_label': priority_label(req.priority),
        'equipment_type': req.equipment_type,
        'status': req.status,
        'notes': req.notes,
        'estimated_duration_minutes': req.estimated_duration_minutes,
        'pickup_room_id': req.pickup_room_id,
        'destination_room_id': req.destination_room_id,
        'pickup_room': _room(req.pickup_room),
        'destination_room': _room(req.destination_room),
        'requested_by': req.requested_by_id,
        'assigned_to': req.assigned_to_id,
        'requested_by_user': _user(req.requested_by),
        'assigned_to_user': _user(req.assigned_to),
        'equipment_id': str(req.equipment_id) if req.equipment_id else None,
        'equipment': None,
        'created_at': _iso(req.created_at),
        'assigned_at': _iso(req.assigned_at),
        'completed_at': _iso(req.completed_at),
    }
    if req.equipment_id:
        eq = req.equipment
        data['equipment'] = {
            'id': str(eq.id),
            'equipment_code': eq.equipment_code,
            'type': eq.type,
            'status': eq.status,
            'battery_level': eq.battery_level,
        }
    if history:
        data['transitions'] = [
            {
                'from': t.from_status,
                'to': t.to_status,
                'operator': t.operator_id,
                'timestamp': _iso(t.timestamp),
                'reason': t.reason,
            }
            for t in req.transitions.all().order_by('timestamp', 'id')
        ]
    return data
