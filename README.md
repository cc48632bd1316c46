# loancalc

A small HTTP service that computes annuity mortgage payments and keeps
every successful calculation in an in-memory history.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Running the server

```
loancalc
```

Options:

- `--config PATH` — the YAML configuration file, `config.yml` by default.
- `--base-path DIR` — the directory the configuration file must lie in;
  the current directory by default. A config path that resolves outside
  it is rejected.

The configuration holds the port to listen on:

```yaml
port: 8080
```

If `port` is missing, it is 0. When the file cannot be read or parsed,
the command logs the error and exits with status 1. The server listens
on all interfaces, using Flask's built-in server, and logs the status
code and duration in nanoseconds of every request.

The interest rates for each program are read from `programs.json` in the
working directory on every calculation:

```json
{
  "program_rates": {
    "salary": 8,
    "military": 9,
    "base": 10
  }
}
```

## Endpoints

### `POST /execute`

Computes a loan. Exactly one of the programs `salary`, `military` and
`base` must be set to `true`. The initial payment must be less than the
object cost and at least 20% of it.

Request:

```json
{
  "object_cost": 5000000,
  "initial_payment": 1000000,
  "months": 240,
  "program": {"military": true}
}
```

The response has the shape:

```json
{
  "result": {
    "program": {"military": true},
    "aggregates": {
      "last_payment_date": "YYYY-MM-DD",
      "rate": 9,
      "loan_sum": 4000000.0,
      "monthly_payment": ...,
      "overpayment": ...
    },
    "params": {"object_cost": 5000000.0, "initial_payment": 1000000.0, "months": 240}
  }
}
```

`monthly_payment` and `overpayment` are rounded to two decimals, and
`last_payment_date` is today shifted by `months` months.

A body that is not valid JSON of this shape gets `400` with
`{"error":"invalid request"}`. A rejected calculation gets `400` with
the reason, for example `{"error":"choose only 1 program"}`. Error
bodies are sent as `text/plain`.

### `GET /cache`

Returns a JSON list of every stored calculation, each with its `id`
added. When nothing has been stored yet the service answers `400` with
`{"error":"empty cache"}`.

## Using it as a library

```python
from loancalc.cache import Cache
from loancalc.service import ExecuteRequest, Service

service = Service(Cache())
request = ExecuteRequest.from_dict({
    "object_cost": 5000000,
    "initial_payment": 1000000,
    "months": 240,
    "program": {"base": True},
})
response, item_id = service.execute(request)
print(response.to_dict())
print([item.to_dict() for item in service.get_all()])
```

`Service` takes an optional `rates_path` for the program rates file.
`loancalc.service.calculate_credit(request, annual_rate, today)` gives
the loan sum, monthly payment, overpayment and last payment date
without validation or storage.

Failures raise a subclass of `loancalc.service.LoanError`:
`UnknownProgramError`, `ChooseProgramError`, `ChooseOnlyOneProgramError`,
`InitialPaymentLowError`, `FirstPaymentExceedsLoanError`, or a plain
`LoanError` when the rates file cannot be read or parsed.
`ExecuteRequest.from_dict` raises `ValueError` on malformed input.

To embed the HTTP endpoints in your own setup, build the Flask
application with `loancalc.handlers.create_app(service)`, or attach them
to an existing one with `loancalc.handlers.register_routes(app, service)`.

## What it does not do

The history of calculations lives only in memory: it is not written
anywhere and is lost when the process stops. There is no way to delete
or look up a single stored calculation.