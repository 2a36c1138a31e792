"""Client module generation: a ``<Service>Client<T>`` struct with one method per RPC."""

from __future__ import annotations

from typing import Dict

from ..config import GenerationOptions
from ..docs import proto_comment_to_rust_doc
from ..model import Method, Service, StreamingShape, method_path
from ..naming import camel_to_snake_case
from ..template import Printer
from ..type_paths import rs_type_path

CODEC_NAME = "tonic_protobuf::ProtoCodec"

# Client methods live in the client module, one level below the file root.
CLIENT_DEPTH = 1

UNARY_FORMAT = r"""
    pub async fn $ident$(
        &mut self,
        request: impl tonic::IntoRequest<$request$>,
    ) -> std::result::Result<tonic::Response<$response$>, tonic::Status> {
        self.inner.ready().await.map_err(|e| {
            tonic::Status::unknown(format!("Service was not ready: {}", e.into()))
        })?;
        let codec = $codec_name$::default();
        let path = http::uri::PathAndQuery::from_static("$path$");
        let mut req = request.into_request();
        req.extensions_mut().insert(GrpcMethod::new("$service_name$", "$method_name$"));
        self.inner.unary(req, path, codec).await
    }
    """

SERVER_STREAMING_FORMAT = r"""
    pub async fn $ident$(
        &mut self,
        request: impl tonic::IntoRequest<$request$>,
    ) -> std::result::Result<tonic::Response<tonic::codec::Streaming<$response$>>, tonic::Status> {
        self.inner.ready().await.map_err(|e| {
            tonic::Status::unknown(format!("Service was not ready: {}", e.into()))
        })?;
        let codec = $codec_name$::default();
        let path = http::uri::PathAndQuery::from_static("$path$");
        let mut req = request.into_request();
        req.extensions_mut().insert(GrpcMethod::new("$service_name$", "$method_name$"));
        self.inner.server_streaming(req, path, codec).await
    }
    """

CLIENT_STREAMING_FORMAT = r"""
    pub async fn $ident$(
        &mut self,
        request: impl tonic::IntoStreamingRequest<Message = $request$>,
    ) -> std::result::Result<tonic::Response<$response$>, tonic::Status> {
        self.inner.ready().await.map_err(|e| {
            tonic::Status::unknown(format!("Service was not ready: {}", e.into()))
        })?;
        let codec = $codec_name$::default();
        let path = http::uri::PathAndQuery::from_static("$path$");
        let mut req = request.into_streaming_request();
        req.extensions_mut().insert(GrpcMethod::new("$service_name$", "$method_name$"));
        self.inner.client_streaming(req, path, codec).await
    }
    """

STREAMING_FORMAT = r"""
    pub async fn $ident$(
        &mut self,
        request: impl tonic::IntoStreamingRequest<Message = $request$>,
    ) -> std::result::Result<tonic::Response<tonic::codec::Streaming<$response$>>, tonic::Status> {
        self.inner.ready().await.map_err(|e| {
            tonic::Status::unknown(format!("Service was not ready: {}", e.into()))
        })?;
        let codec = $codec_name$::default();
        let path = http::uri::PathAndQuery::from_static("$path$");
        let mut req = request.into_streaming_request();
        req.extensions_mut().insert(GrpcMethod::new("$service_name$", "$method_name$"));
        self.inner.streaming(req, path, codec).await
    }
    """

METHOD_FORMATS: Dict[StreamingShape, str] = {
    StreamingShape.UNARY: UNARY_FORMAT,
    StreamingShape.SERVER_STREAMING: SERVER_STREAMING_FORMAT,
    StreamingShape.CLIENT_STREAMING: CLIENT_STREAMING_FORMAT,
    StreamingShape.BIDI_STREAMING: STREAMING_FORMAT,
}

CLIENT_FORMAT = r"""
    /// Generated client implementations.
    pub mod $client_mod$ {
        #![allow(
            unused_variables,
            dead_code,
            missing_docs,
            clippy::wildcard_imports,
            // will trigger if compression is disabled
            clippy::let_unit_value,
        )]
        use tonic::codegen::*;
        use tonic::codegen::http::Uri;

        $service_doc$
        #[derive(Debug, Clone)]
        pub struct $service_ident$<T> {
            inner: tonic::client::Grpc<T>,
        }

        impl<T> $service_ident$<T>
        where
            T: tonic::client::GrpcService<tonic::body::Body>,
            T::Error: Into<StdError>,
            T::ResponseBody: Body<Data = Bytes> + std::marker::Send + 'static,
            <T::ResponseBody as Body>::Error: Into<StdError> + std::marker::Send,
        {
            pub fn new(inner: T) -> Self {
                let inner = tonic::client::Grpc::new(inner);
                Self { inner }
            }

            pub fn with_origin(inner: T, origin: Uri) -> Self {
                let inner = tonic::client::Grpc::with_origin(inner, origin);
                Self { inner }
            }

            pub fn with_interceptor<F>(
                inner: T,
                interceptor: F,
            ) -> $service_ident$<InterceptedService<T, F>>
            where
                F: tonic::service::Interceptor,
                T::ResponseBody: Default,
                T: tonic::codegen::Service<
                    http::Request<tonic::body::Body>,
                    Response = http::Response<
                        <T as tonic::client::GrpcService<tonic::body::Body>>::ResponseBody,
                    >,
                >,
                <T as tonic::codegen::Service<
                    http::Request<tonic::body::Body>,
                >>::Error: Into<StdError> + std::marker::Send + std::marker::Sync,
            {
                $service_ident$::new(InterceptedService::new(inner, interceptor))
            }

            /// Compress requests with the given encoding.
            ///
            /// This requires the server to support it otherwise it might respond with an
            /// error.
            #[must_use]
            pub fn send_compressed(mut self, encoding: CompressionEncoding) -> Self {
                self.inner = self.inner.send_compressed(encoding);
                self
            }

            /// Enable decompressing responses.
            #[must_use]
            pub fn accept_compressed(mut self, encoding: CompressionEncoding) -> Self {
                self.inner = self.inner.accept_compressed(encoding);
                self
            }

            /// Limits the maximum size of a decoded message.
            ///
            /// Default: `4MB`
            #[must_use]
            pub fn max_decoding_message_size(mut self, limit: usize) -> Self {
                self.inner = self.inner.max_decoding_message_size(limit);
                self
            }

            /// Limits the maximum size of an encoded message.
            ///
            /// Default: `usize::MAX`
            #[must_use]
            pub fn max_encoding_message_size(mut self, limit: usize) -> Self {
                self.inner = self.inner.max_encoding_message_size(limit);
                self
            }

            $methods$
        }
    }
    """


def client_module_name(service: Service) -> str:
    return f"{camel_to_snake_case(service.name)}_client"


def client_struct_name(service: Service) -> str:
    return f"{service.name}Client"


def generate_method(
    printer: Printer, service: Service, method: Method, options: GenerationOptions
) -> None:
    """Emit the client method for *method*; the skeleton depends on its streaming shape."""

    printer.write_raw(proto_comment_to_rust_doc(method.comment))
    if method.is_deprecated:
        printer.write_raw("#[deprecated]\n")
    printer.emit(
        METHOD_FORMATS[method.streaming_shape],
        {
            "codec_name": CODEC_NAME,
            "ident": method.name,
            "request": rs_type_path(method.input_type, options, CLIENT_DEPTH),
            "response": rs_type_path(method.output_type, options, CLIENT_DEPTH),
            "service_name": service.full_name,
            "path": method_path(service, method),
            "method_name": method.proto_name,
        },
    )


def generate_methods(printer: Printer, service: Service, options: GenerationOptions) -> None:
    for index, method in enumerate(service.methods):
        if index:
            printer.write_raw("\n")
        generate_method(printer, service, method, options)


def generate_client(printer: Printer, service: Service, options: GenerationOptions) -> None:
    """Emit the ``<service>_client`` module for *service*."""

    service_ident = client_struct_name(service)
    printer.emit(
        CLIENT_FORMAT,
        {
            "client_mod": client_module_name(service),
            "service_ident": service_ident,
            "service_doc": proto_comment_to_rust_doc(service.comment),
            "methods": lambda: generate_methods(printer, service, options),
        },
    )


__all__ = [
    "CODEC_NAME",
    "METHOD_FORMATS",
    "client_module_name",
    "client_struct_name",
    "generate_client",
    "generate_method",
    "generate_methods",
]
