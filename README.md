# managed-webhooks

A set of validating admission webhooks for managed Kubernetes and OpenShift
clusters. Each webhook answers `AdmissionReview` requests sent by the API
server and decides whether a change to a protected resource may go ahead.

## Webhooks

| Webhook | Module | What it guards |
| --- | --- | --- |
| `clusterlogging-validation` | `managed_webhooks.webhooks.clusterlogging` | Retention `maxAge` of `ClusterLogging` resources: application between `1h` and `7d`, infra and audit exactly `1h` |
| `clusterroles-validation` | `managed_webhooks.webhooks.clusterrole` | Protected cluster roles (`cluster-admin`, `view`, `edit`, `admin`, selected `system:` roles, `backplane-*`) may not be deleted |
| `clusterrolebindings-validation` | `managed_webhooks.webhooks.clusterrolebinding` | Cluster role bindings whose service-account subjects live in `openshift-*` or `kube-system` namespaces (with a few exceptions) may not be deleted |
| `hcpnamespace-validation` | `managed_webhooks.webhooks.hcpnamespace` | Namespaces matching `ocm-staging-*`, `ocm-production-*`, `ocm-integration-*`, `klusterlet-*` and `hs-mc-*` may only be deleted by authorised accounts |
| `hiveownership-validation` | `managed_webhooks.webhooks.hiveownership` | Resources labelled `hive.openshift.io/managed: "true"` may only be changed by administrators |
| `hostedcluster-validation` | `managed_webhooks.webhooks.hostedcluster` | `HostedCluster` resources may only be deleted by the klusterlet work service account |

Every webhook is a subclass of `managed_webhooks.admission.Webhook` and is
served under `/<webhook name>`. Every response that is sent carries the audit
annotation `owner: srep-managed-webhook`.

## Installing

```
pip install .
```

The package has no runtime dependencies beyond the Python standard library
and needs Python 3.10 or newer.

## Running the server

```
managed-webhooks
```

starts an HTTP server (`managed_webhooks.server`) that hands every request to
a `Dispatcher`, which routes it by path to the matching webhook. Options:

| Option | Default | Meaning |
| --- | --- | --- |
| `-listen` | `0.0.0.0` | listen address |
| `-port` | `5000` | port to listen on |
| `-testhooks` | off | check that no two webhooks share a URI, then exit |
| `-tls` | off | serve TLS, using `-tlskey`, `-tlscert` and `-cacert` |
| `-tlskey`, `-tlscert`, `-cacert` | empty | key, certificate and CA certificate files |
| `-metrics-bind-address` | `:8080` | address of the metrics endpoint |

How requests are answered:

* a path with no registered webhook gets HTTP 404;
* a body that is not an `AdmissionReview` with a `request` gets HTTP 400;
* otherwise the HTTP status is 200 and the outcome is in the response body;
  a request the webhook does not accept (for example a wrong kind or an empty
  username) is answered with an error status of code 400 inside that body.

The metrics endpoint, serving `/metrics` in the Prometheus text format, is
started only when the operator namespace can be read from the service
account file; with `OSDK_FORCE_RUN_MODE=local` it is skipped.

## Documenting the webhooks

```
managed-webhooks-docs
```

writes a JSON array describing every registered webhook, sorted by name: its
`webhookName`, its `documentString`, and, unless `-hideRules` (or
`--hide-rules`) is given, its `rules` and `webhookObjectSelector`.

## Using the webhooks from Python

Webhooks can be called directly, without a server:

```python
from managed_webhooks.admission import AdmissionRequest
from managed_webhooks.webhooks.hostedcluster import HostedClusterWebhook

request = AdmissionRequest.from_dict({
    "uid": "example-uid",
    "kind": {"group": "hypershift.openshift.io", "version": "v1beta1", "kind": "HostedCluster"},
    "operation": "DELETE",
    "userInfo": {"username": "someone"},
})

hook = HostedClusterWebhook()
if hook.validate(request):
    response = hook.authorized(request)
    print(response.to_dict())
```

Other entry points:

* `managed_webhooks.admission`: the request and response types,
  `allowed`, `denied`, `errored`, `parse_admission_review`, `encode_review`
  and `send_response`.
* `managed_webhooks.registry`: `registered_webhooks()` returns the webhook
  factories by name; `register()` adds one and raises
  `DuplicateWebhookError` for a name already taken.
* `managed_webhooks.dispatcher.Dispatcher`: `handle_request(request_uri, body)`
  returns the HTTP status and the response body, as the server sends them.
* `managed_webhooks.fakes`: `create_http_request` and `send_http_request`
  build an `AdmissionReview` body and run it through a webhook, for tests.
* `managed_webhooks.config.is_privileged_namespace`: whether a namespace is
  on the built-in list of privileged namespaces.
* `managed_webhooks.syncset`: `SyncSetResourcesByLabelSelector` groups
  resources by cluster label selector and renders one encoded
  `SelectorSyncSet` per selector; `encode_and_fix_daemonset`,
  `encode_validating_and_fix_ca` and `encode_mutating_and_fix_ca` encode
  manifests with the fields those resources need.
* `managed_webhooks.k8sutil`: `get_operator_namespace()` and
  `get_operator_name()`.
* `managed_webhooks.localmetrics`: a `CounterVec` and `render_metrics()`.

## What this package does not do

* It does not talk to a cluster: it neither installs webhook configurations
  nor creates the resources that would route admission requests to the
  server.
* It has no command that writes out `SelectorSyncSet` or deployment
  manifests; `managed_webhooks.syncset` only provides the building blocks.
* The list of privileged namespaces is built in and is not refreshed from
  any outside source.

## Running the tests

```
pip install ".[test]"
pytest
```