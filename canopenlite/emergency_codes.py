"""Emergency error register bits, error codes and error status bits."""

from __future__ import annotations

from enum import IntEnum, IntFlag

EMERGENCY_ERROR_STATUS_BITS = 80
SERVICE_ID = 0x80


class ErrorRegister(IntFlag):
    """Bits of the error register (object 0x1001)."""

    GENERIC = 0x01
    CURRENT = 0x02
    VOLTAGE = 0x04
    TEMPERATURE = 0x08
    COMMUNICATION = 0x10
    DEV_PROFILE = 0x20
    RESERVED = 0x40
    MANUFACTURER = 0x80


class ErrorCode(IntEnum):
    """Standard emergency error codes."""

    NO_ERROR = 0x0000
    GENERIC = 0x1000
    CURRENT = 0x2000
    CURRENT_INPUT = 0x2100
    CURRENT_INSIDE = 0x2200
    CURRENT_OUTPUT = 0x2300
    VOLTAGE = 0x3000
    VOLTAGE_MAINS = 0x3100
    VOLTAGE_INSIDE = 0x3200
    VOLTAGE_OUTPUT = 0x3300
    TEMPERATURE = 0x4000
    TEMP_AMBIENT = 0x4100
    TEMP_DEVICE = 0x4200
    HARDWARE = 0x5000
    SOFTWARE_DEVICE = 0x6000
    SOFTWARE_INTERNAL = 0x6100
    SOFTWARE_USER = 0x6200
    DATA_SET = 0x6300
    ADDITIONAL_MODUL = 0x7000
    MONITORING = 0x8000
    COMMUNICATION = 0x8100
    CAN_OVERRUN = 0x8110
    CAN_PASSIVE = 0x8120
    HEARTBEAT = 0x8130
    BUS_OFF_RECOVERED = 0x8140
    CAN_ID_COLLISION = 0x8150
    PROTOCOL_ERROR = 0x8200
    PDO_LENGTH = 0x8210
    PDO_LENGTH_EXC = 0x8220
    DAM_MPDO = 0x8230
    SYNC_DATA_LENGTH = 0x8240
    RPDO_TIMEOUT = 0x8250
    EXTERNAL_ERROR = 0x9000
    ADDITIONAL_FUNC = 0xF000
    DEVICE_SPECIFIC = 0xFF00
    DS401_OUT_CUR_HI = 0x2310
    DS401_OUT_SHORTED = 0x2320
    DS401_OUT_LOAD_DUMP = 0x2330
    DS401_IN_VOLT_HI = 0x3110
    DS401_IN_VOLT_LOW = 0x3120
    DS401_INTERN_VOLT_HI = 0x3210
    DS401_INTERN_VOLT_LOW = 0x3220
    DS401_OUT_VOLT_HIGH = 0x3310
    DS401_OUT_VOLT_LOW = 0x3320


class ErrorStatus(IntEnum):
    """Error status bit numbers kept by the emergency producer."""

    NO_ERROR = 0x00
    CAN_BUS_WARNING = 0x01
    RX_MSG_WRONG_LENGTH = 0x02
    RX_MSG_OVERFLOW = 0x03
    RPDO_WRONG_LENGTH = 0x04
    RPDO_OVERFLOW = 0x05
    CAN_RX_BUS_PASSIVE = 0x06
    CAN_TX_BUS_PASSIVE = 0x07
    NMT_WRONG_COMMAND = 0x08
    TIME_TIMEOUT = 0x09
    UNUSED_0A = 0x0A
    UNUSED_0B = 0x0B
    UNUSED_0C = 0x0C
    UNUSED_0D = 0x0D
    UNUSED_0E = 0x0E
    UNUSED_0F = 0x0F
    UNUSED_10 = 0x10
    UNUSED_11 = 0x11
    CAN_TX_BUS_OFF = 0x12
    CAN_RXB_OVERFLOW = 0x13
    CAN_TX_OVERFLOW = 0x14
    TPDO_OUTSIDE_WINDOW = 0x15
    UNUSED_16 = 0x16
    RPDO_TIMEOUT = 0x17
    SYNC_TIMEOUT = 0x18
    SYNC_LENGTH = 0x19
    PDO_WRONG_MAPPING = 0x1A
    HEARTBEAT_CONSUMER = 0x1B
    HB_CONSUMER_REMOTE_RESET = 0x1C
    UNUSED_1D = 0x1D
    UNUSED_1E = 0x1E
    UNUSED_1F = 0x1F
    EMERGENCY_BUFFER_FULL = 0x20
    UNUSED_21 = 0x21
    MICROCONTROLLER_RESET = 0x22
    UNUSED_23 = 0x23
    UNUSED_24 = 0x24
    UNUSED_25 = 0x25
    UNUSED_26 = 0x26
    NON_VOLATILE_AUTO_SAVE = 0x27
    WRONG_ERROR_REPORT = 0x28
    ISR_TIMER_OVERFLOW = 0x29
    MEMORY_ALLOCATION_ERROR = 0x2A
    GENERIC_ERROR = 0x2B
    GENERIC_SOFTWARE_ERROR = 0x2C
    INCONSISTENT_OBJECT_DICT = 0x2D
    CALCULATION_OF_PARAMETERS = 0x2E
    NON_VOLATILE_MEMORY = 0x2F
    MANUFACTURER_START = 0x30
    MANUFACTURER_END = EMERGENCY_ERROR_STATUS_BITS - 1


_UNUSED = "(unused)"

_ERROR_CODE_DESCRIPTIONS: dict[int, str] = {
    ErrorCode.NO_ERROR: "Reset or No Error",
    ErrorCode.GENERIC: "Generic Error",
    ErrorCode.CURRENT: "Current",
    ErrorCode.CURRENT_INPUT: "Current, device input side",
    ErrorCode.CURRENT_INSIDE: "Current inside the device",
    ErrorCode.CURRENT_OUTPUT: "Current, device output side",
    ErrorCode.VOLTAGE: "Voltage",
    ErrorCode.VOLTAGE_MAINS: "Mains Voltage",
    ErrorCode.VOLTAGE_INSIDE: "Voltage inside the device",
    ErrorCode.VOLTAGE_OUTPUT: "Output Voltage",
    ErrorCode.TEMPERATURE: "Temperature",
    ErrorCode.TEMP_AMBIENT: "Ambient Temperature",
    ErrorCode.TEMP_DEVICE: "Device Temperature",
    ErrorCode.HARDWARE: "Device Hardware",
    ErrorCode.SOFTWARE_DEVICE: "Device Software",
    ErrorCode.SOFTWARE_INTERNAL: "Internal Software",
    ErrorCode.SOFTWARE_USER: "User Software",
    ErrorCode.DATA_SET: "Data Set",
    ErrorCode.ADDITIONAL_MODUL: "Additional Modules",
    ErrorCode.MONITORING: "Monitoring",
    ErrorCode.COMMUNICATION: "Communication",
    ErrorCode.CAN_OVERRUN: "CAN Overrun (Objects lost)",
    ErrorCode.CAN_PASSIVE: "CAN in Error Passive Mode",
    ErrorCode.HEARTBEAT: "Life Guard Error or Heartbeat Error",
    ErrorCode.BUS_OFF_RECOVERED: "Recovered from bus off",
    ErrorCode.CAN_ID_COLLISION: "CAN-ID collision",
    ErrorCode.PROTOCOL_ERROR: "Protocol Error",
    ErrorCode.PDO_LENGTH: "PDO not processed due to length error",
    ErrorCode.PDO_LENGTH_EXC: "PDO length exceeded",
    ErrorCode.DAM_MPDO: "DAM MPDO not processed, destination object not available",
    ErrorCode.SYNC_DATA_LENGTH: "Unexpected SYNC data length",
    ErrorCode.RPDO_TIMEOUT: "RPDO timeout",
    ErrorCode.EXTERNAL_ERROR: "External Error",
    ErrorCode.ADDITIONAL_FUNC: "Additional Functions",
    ErrorCode.DEVICE_SPECIFIC: "Device specific",
    ErrorCode.DS401_OUT_CUR_HI: "DS401, Current at outputs too high (overload)",
    ErrorCode.DS401_OUT_SHORTED: "DS401, Short circuit at outputs",
    ErrorCode.DS401_OUT_LOAD_DUMP: "DS401, Load dump at outputs",
    ErrorCode.DS401_IN_VOLT_HI: "DS401, Input voltage too high",
    ErrorCode.DS401_IN_VOLT_LOW: "DS401, Input voltage too low",
    ErrorCode.DS401_INTERN_VOLT_HI: "DS401, Internal voltage too high",
    ErrorCode.DS401_INTERN_VOLT_LOW: "DS401, Internal voltage too low",
    ErrorCode.DS401_OUT_VOLT_HIGH: "DS401, Output voltage too high",
    ErrorCode.DS401_OUT_VOLT_LOW: "DS401, Output voltage too low",
}

_ERROR_STATUS_DESCRIPTIONS: dict[int, str] = {
    ErrorStatus.NO_ERROR: "Error Reset or No Error",
    ErrorStatus.CAN_BUS_WARNING: "CAN bus warning limit reached",
    ErrorStatus.RX_MSG_WRONG_LENGTH: "Wrong data length of the received CAN message",
    ErrorStatus.RX_MSG_OVERFLOW: "Previous received CAN message wasn't processed yet",
    ErrorStatus.RPDO_WRONG_LENGTH: "Wrong data length of received PDO",
    ErrorStatus.RPDO_OVERFLOW: "Previous received PDO wasn't processed yet",
    ErrorStatus.CAN_RX_BUS_PASSIVE: "CAN receive bus is passive",
    ErrorStatus.CAN_TX_BUS_PASSIVE: "CAN transmit bus is passive",
    ErrorStatus.NMT_WRONG_COMMAND: "Wrong NMT command received",
    ErrorStatus.TIME_TIMEOUT: "TIME message timeout",
    ErrorStatus.UNUSED_0A: _UNUSED,
    ErrorStatus.UNUSED_0B: _UNUSED,
    ErrorStatus.UNUSED_0C: _UNUSED,
    ErrorStatus.UNUSED_0D: _UNUSED,
    ErrorStatus.UNUSED_0E: _UNUSED,
    ErrorStatus.UNUSED_0F: _UNUSED,
    ErrorStatus.UNUSED_10: _UNUSED,
    ErrorStatus.UNUSED_11: _UNUSED,
    ErrorStatus.CAN_TX_BUS_OFF: "CAN transmit bus is off",
    ErrorStatus.CAN_RXB_OVERFLOW: "CAN module receive buffer has overflowed",
    ErrorStatus.CAN_TX_OVERFLOW: "CAN transmit buffer has overflowed",
    ErrorStatus.TPDO_OUTSIDE_WINDOW: "TPDO is outside SYNC window",
    ErrorStatus.UNUSED_16: _UNUSED,
    ErrorStatus.RPDO_TIMEOUT: "RPDO message timeout",
    ErrorStatus.SYNC_TIMEOUT: "SYNC message timeout",
    ErrorStatus.SYNC_LENGTH: "Unexpected SYNC data length",
    ErrorStatus.PDO_WRONG_MAPPING: "Error with PDO mapping",
    ErrorStatus.HEARTBEAT_CONSUMER: "Heartbeat consumer timeout",
    ErrorStatus.HB_CONSUMER_REMOTE_RESET: "Heartbeat consumer detected remote node reset",
    ErrorStatus.UNUSED_1D: _UNUSED,
    ErrorStatus.UNUSED_1E: _UNUSED,
    ErrorStatus.UNUSED_1F: _UNUSED,
    ErrorStatus.EMERGENCY_BUFFER_FULL: "Emergency buffer is full, Emergency message wasn't sent",
    ErrorStatus.UNUSED_21: _UNUSED,
    ErrorStatus.MICROCONTROLLER_RESET: "Microcontroller has just started",
    ErrorStatus.UNUSED_23: _UNUSED,
    ErrorStatus.UNUSED_24: _UNUSED,
    ErrorStatus.UNUSED_25: _UNUSED,
    ErrorStatus.UNUSED_26: _UNUSED,
    ErrorStatus.NON_VOLATILE_AUTO_SAVE: "Automatic store to non-volatile memory failed",
    ErrorStatus.WRONG_ERROR_REPORT: "Wrong parameters to ErrorReport function",
    ErrorStatus.ISR_TIMER_OVERFLOW: "Timer task has overflowed",
    ErrorStatus.MEMORY_ALLOCATION_ERROR: "Unable to allocate memory for objects",
    ErrorStatus.GENERIC_ERROR: "Generic error, test usage",
    ErrorStatus.GENERIC_SOFTWARE_ERROR: "Software error",
    ErrorStatus.INCONSISTENT_OBJECT_DICT: "Object dictionary does not match the software",
    ErrorStatus.CALCULATION_OF_PARAMETERS: "Error in calculation of device parameters",
    ErrorStatus.NON_VOLATILE_MEMORY: "Error with access to non-volatile device memory",
}


def error_status_description(error_status: int) -> str:
    """Describe an error status bit number."""
    description = _ERROR_STATUS_DESCRIPTIONS.get(int(error_status))
    if description is not None:
        return description
    if ErrorStatus.MANUFACTURER_START <= error_status <= ErrorStatus.MANUFACTURER_END:
        return "Manufacturer error"
    return "Invalid or not implemented error status"


def error_code_description(error_code: int) -> str:
    """Describe an emergency error code."""
    return _ERROR_CODE_DESCRIPTIONS.get(
        int(error_code), "Invalid or not implemented error code"
    )